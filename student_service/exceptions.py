from typing import Optional


class IndexUnavailable(Exception):
    """An ordered query needs a store index that does not exist yet."""

    def __init__(self, collection: str, fields):
        self.collection = collection
        self.fields = list(fields)
        super().__init__(
            f"Index on {collection}({', '.join(self.fields)}) is not available"
        )


class StaleReference(Exception):
    """A quiz result points to a quiz that no longer exists."""

    def __init__(self, quiz_id: str, result_id: Optional[str] = None):
        self.quiz_id = quiz_id
        self.result_id = result_id
        super().__init__(f"Quiz {quiz_id} not found")


class FetchFailure(Exception):
    """A required read failed; the whole computation is aborted."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class DuplicateDocument(Exception):
    """An insert would break a unique index."""

    def __init__(self, collection: str, fields):
        self.collection = collection
        self.fields = list(fields)
        super().__init__(
            f"A document with the same {', '.join(self.fields)} already exists in {collection}"
        )
