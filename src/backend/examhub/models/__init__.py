"""
Models package
Export question, answer and scoring models
"""

from .question import (
    QuestionType,
    ScoringStrategy,
    ExamCategory,
    CamelModel,
    QuestionItem,
    ChoiceOption,
    SubQuestionMeta,
    BaseQuestion,
    MultipleChoiceQuestion,
    CompletionQuestion,
    MatchingQuestion,
    LabelingQuestion,
    PickFromListQuestion,
    TrueFalseNotGivenQuestion,
    YesNoNotGivenQuestion,
    MatchingHeadingsQuestion,
    ShortAnswerQuestion,
    TranslationSentence,
    SentenceTranslationQuestion,
    WordFormExercise,
    WordFormQuestion,
    WritingTaskQuestion,
    WritingTask1Question,
    WritingTask2Question,
    Question,
    parse_question,
)
from .standard import StandardOption, StandardQuestion
from .exam import Section, Exam, StandardSection, StandardExam
from .answer import AnswerPayload, UserAnswer, InvalidAnswerError, coerce_answer_payload
from .scoring import (
    AIScoringFn,
    AIScoringResult,
    ScoringContext,
    ScoringErrorCode,
    ScoringErrorInfo,
    ScoringResult,
    ValidationResult,
)

__all__ = [
    "QuestionType",
    "ScoringStrategy",
    "ExamCategory",
    "CamelModel",
    "QuestionItem",
    "ChoiceOption",
    "SubQuestionMeta",
    "BaseQuestion",
    "MultipleChoiceQuestion",
    "CompletionQuestion",
    "MatchingQuestion",
    "LabelingQuestion",
    "PickFromListQuestion",
    "TrueFalseNotGivenQuestion",
    "YesNoNotGivenQuestion",
    "MatchingHeadingsQuestion",
    "ShortAnswerQuestion",
    "TranslationSentence",
    "SentenceTranslationQuestion",
    "WordFormExercise",
    "WordFormQuestion",
    "WritingTaskQuestion",
    "WritingTask1Question",
    "WritingTask2Question",
    "Question",
    "parse_question",
    "StandardOption",
    "StandardQuestion",
    "Section",
    "Exam",
    "StandardSection",
    "StandardExam",
    "AnswerPayload",
    "UserAnswer",
    "InvalidAnswerError",
    "coerce_answer_payload",
    "AIScoringFn",
    "AIScoringResult",
    "ScoringContext",
    "ScoringErrorCode",
    "ScoringErrorInfo",
    "ScoringResult",
    "ValidationResult",
]
