class WorkflowError(Exception):
    """A farm rule was violated; the message is safe to show the user."""

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self):
        return self.message
