from threading import Lock


class TripleLocks:
    """Striped locks keyed by a (question, student, rater) triple.

    Two submissions for the same triple always map to the same lock, so the
    lookup-then-write sequence for a triple runs one at a time within the
    process. Unrelated triples may share a stripe; that only costs some
    waiting.
    """

    def __init__(self, stripes: int = 64):
        if stripes < 1:
            raise ValueError("stripes must be at least 1")
        self._locks = [Lock() for _ in range(stripes)]

    def __len__(self) -> int:
        return len(self._locks)

    def for_triple(self, question_id: int, student_id: int, rater_id: int) -> Lock:
        return self._locks[hash((question_id, student_id, rater_id)) % len(self._locks)]
