"""Expected failure states surfaced to callers as structured responses."""


class RecommenderError(Exception):
    code = "recommender_error"
    status = 400

    def __init__(self, message="", *, code=None, status=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        if code:
            self.code = code
        if status:
            self.status = status


class PreconditionUnmet(RecommenderError):
    # User-actionable: not enough history yet
    code = "not_eligible"
    status = 403


class EmptyResult(RecommenderError):
    code = "empty_result"
    status = 404


class InvalidInput(RecommenderError):
    code = "invalid_input"
    status = 400
