from formflow.models.form import Form
from formflow.models.form_field import FormField
from formflow.models.response import Response
from formflow.models.response_answer import ResponseAnswer
from formflow.models.response_answer_vector import ResponseAnswerVector

__all__ = [
    "Form",
    "FormField",
    "Response",
    "ResponseAnswer",
    "ResponseAnswerVector",
]
