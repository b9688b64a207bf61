"""
判断题插件（YES / NO / NOT GIVEN）

与 TRUE / FALSE / NOT GIVEN 结构相同，比对前先规范化常见写法：
t -> yes, f -> no, ng / n / not_given -> not-given
"""

from examhub.models import ExamCategory, YesNoNotGivenQuestion

from .base import PluginConfig
from .true_false_not_given import TrueFalseNotGivenPlugin

_SYNONYMS = {
    "yes": "yes",
    "t": "yes",
    "no": "no",
    "f": "no",
    "not-given": "not-given",
    "not_given": "not-given",
    "ng": "not-given",
    "n": "not-given",
}


class YesNoNotGivenPlugin(TrueFalseNotGivenPlugin):
    """YES / NO / NOT GIVEN 判断题（观点类）"""

    config = PluginConfig(
        type="yes-no-not-given",
        display_name="Yes / No / Not Given",
        description="Determine if statements are yes, no, or not given based on the passage",
        category=[ExamCategory.READING],
        supports_partial_scoring=True,
        supports_ai_scoring=False,
        default_points=1,
        has_sub_questions=True,
    )

    question_class = YesNoNotGivenQuestion
    valid_answers = ["yes", "no", "not-given"]
    invalid_answer_message = "All correct answers must be 'yes', 'no', or 'not-given' (lowercase)"
    display_label = "Yes/No/Not Given"

    def default_sub_points(self) -> float:
        return 1

    def normalize_answer(self, value: str) -> str:
        text = (value or "").strip().lower()
        return _SYNONYMS.get(text, text)

    def is_valid_answer(self, answer: str) -> bool:
        return answer.lower() in self.valid_answers
