import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from peerrank.core import config
from peerrank.database import Base, engine, ensure_ratings_schema
from peerrank.models import question, rating, room, student  # noqa: F401
from peerrank.routes import auth_routes, question_routes, rating_routes, room_routes, student_routes
from peerrank.services.locks import TripleLocks

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title='PeerRank')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

# One lock table per process; every request's submissions go through it.
app.state.submission_locks = TripleLocks(config.SUBMISSION_LOCK_STRIPES)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_ratings_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'PeerRank API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(student_routes.router, prefix='/students')
app.include_router(room_routes.router, prefix='/rooms')
app.include_router(question_routes.router, prefix='/questions')
app.include_router(rating_routes.router, prefix='/ratings')
