"""
Error taxonomy

Every failure a user can see is one of these. Each carries the HTTP status
the API answers with and a human-readable message.
"""


class QuizError(Exception):
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequest(QuizError):
    status_code = 400
    default_message = "Invalid request"


class UnsupportedFormat(QuizError):
    status_code = 400
    default_message = "Invalid file type. Please upload a .pptx, .docx, or .pdf file"


class ExtractionFailed(QuizError):
    status_code = 422
    default_message = "Could not extract sufficient text from the document"


class QuizGenerationFailed(QuizError):
    status_code = 502
    default_message = "Failed to generate quiz"


class MalformedModelResponse(QuizGenerationFailed):
    default_message = "Invalid response format from model"


class InvalidQuestionShape(QuizGenerationFailed):
    default_message = "Invalid question format from model"


class NotFound(QuizError):
    status_code = 404
    default_message = "Quiz not found"


class RenderFailed(QuizError):
    status_code = 500
    default_message = "Failed to generate PDF"
