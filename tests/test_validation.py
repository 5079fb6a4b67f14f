import json

import pytest

from quizwise.core.errors import (
    IncompleteQuestionError,
    MalformedResponseError,
    OptionCountError,
    SchemaError,
    ValidationError,
)
from quizwise.services.validation import (
    DEFAULT_EXPLANATION,
    LenientValidator,
    StrictValidator,
    parse_analysis_response,
    parse_json_response,
    strip_code_fences,
    validate_quiz_response,
)


def _reply(*questions) -> str:
    return json.dumps({"questions": list(questions)})


def _mcq(**overrides):
    q = {
        "question": "2+2?",
        "type": "mcq",
        "options": ["3", "4", "5", "6"],
        "answer": "4",
        "difficulty": "easy",
        "topic": "Arithmetic",
        "explanation": "Basic addition.",
    }
    q.update(overrides)
    return q


# ── Fence stripping ──────────────────────────────────────────────────────────

class TestStripCodeFences:
    def test_removes_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_removes_bare_fence_and_whitespace(self):
        assert strip_code_fences('  \n```\n{"a": 1}\n```\n ') == '{"a": 1}'

    def test_clean_text_is_unchanged(self):
        text = '{"questions": []}'
        assert strip_code_fences(text) == text

    def test_idempotent(self):
        once = strip_code_fences('```json\n{"a": [1, 2]}\n```')
        assert strip_code_fences(once) == once


# ── Parsing and shape ────────────────────────────────────────────────────────

class TestParsing:
    def test_trailing_comma_is_malformed(self):
        raw = '{"questions": [1, 2,]}'
        with pytest.raises(MalformedResponseError) as exc_info:
            parse_json_response(raw)
        assert exc_info.value.raw_text == raw
        assert raw not in str(exc_info.value)

    def test_empty_reply_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            parse_json_response("```json\n```")

    def test_missing_questions_array(self):
        with pytest.raises(SchemaError):
            validate_quiz_response('{"items": []}', StrictValidator())

    def test_questions_not_a_list(self):
        with pytest.raises(SchemaError):
            validate_quiz_response('{"questions": {"a": 1}}', LenientValidator())

    def test_analysis_reply_must_be_object(self):
        with pytest.raises(SchemaError):
            parse_analysis_response("[1, 2, 3]")
        assert parse_analysis_response('```json\n{"weakAreas": []}\n```') == {"weakAreas": []}


# ── Strict policy ────────────────────────────────────────────────────────────

class TestStrictValidator:
    def test_accepts_valid_batch(self):
        raw = _reply(
            {"question": "Q1", "options": ["a", "b", "c", "d"], "answer": "b"},
            {"question": "Q2", "options": ["w", "x", "y", "z"], "answer": "z"},
        )
        batch = validate_quiz_response(raw, StrictValidator())
        assert [q.answer for q in batch.questions] == ["b", "z"]
        assert batch.fixes == []

    def test_single_bad_question_rejects_batch(self):
        raw = _reply(
            {"question": "Q1", "options": ["a", "b", "c", "d"], "answer": "b"},
            {"question": "Q2", "options": ["a", "b", "c", "d"], "answer": "e"},
            {"question": "Q3", "options": ["a", "b", "c", "d"], "answer": "c"},
        )
        with pytest.raises(ValidationError) as exc_info:
            validate_quiz_response(raw, StrictValidator())
        assert exc_info.value.index == 2
        assert "Question 2" in str(exc_info.value)

    def test_no_case_insensitive_repair(self):
        raw = _reply({"question": "Q", "options": ["Paris", "Rome", "Oslo", "Bern"], "answer": "paris"})
        with pytest.raises(ValidationError):
            validate_quiz_response(raw, StrictValidator())

    def test_option_count(self):
        raw = _reply({"question": "Q", "options": ["a", "b", "c"], "answer": "a"})
        with pytest.raises(OptionCountError) as exc_info:
            validate_quiz_response(raw, StrictValidator())
        assert exc_info.value.index == 1

    def test_missing_options(self):
        raw = _reply({"question": "Q", "answer": "a"})
        with pytest.raises(IncompleteQuestionError):
            validate_quiz_response(raw, StrictValidator())


# ── Lenient policy ───────────────────────────────────────────────────────────

class TestLenientValidator:
    def test_fenced_four_repaired_to_first_option(self):
        raw = (
            '```json\n{"questions":[{"question":"2+2?","type":"mcq",'
            '"options":["3","4","5","6"],"answer":"four"}]}\n```'
        )
        batch = validate_quiz_response(raw, LenientValidator())
        question = batch.questions[0]
        assert question.answer == "3"
        assert len(batch.fixes) == 1
        assert batch.fixes[0].original == "four"
        assert batch.fixes[0].corrected == "3"

    def test_case_insensitive_match_uses_option_text(self):
        batch = LenientValidator().validate([_mcq(options=["Paris", "Rome", "Oslo", "Bern"], answer="  paris ")])
        assert batch.questions[0].answer == "Paris"
        assert batch.fixes == []

    def test_substring_repair(self):
        batch = LenientValidator().validate(
            [_mcq(options=["The mitochondria", "Nucleus", "Ribosome", "Golgi"], answer="mitochondria")]
        )
        assert batch.questions[0].answer == "The mitochondria"
        assert batch.fixes[0].reason == "substring match"

    def test_substring_repair_other_direction(self):
        batch = LenientValidator().validate(
            [_mcq(type="fill_in_the_blank", question="H2O is _____.",
                  options=["water", "salt", "sugar", "oil"], answer="Water (H2O)")]
        )
        assert batch.questions[0].answer == "water"

    def test_repaired_answer_always_in_options(self):
        raw_questions = [
            _mcq(answer="4"),
            _mcq(answer="FOUR"),
            _mcq(answer="  6 "),
            _mcq(options=["alpha", "beta", "gamma", "delta"], answer="Beta"),
            _mcq(options=["alpha", "beta", "gamma", "delta"], answer="omega"),
        ]
        batch = LenientValidator().validate(raw_questions)
        for question in batch.questions:
            assert len(question.options) == 4
            matches = [o for o in question.options if o.lower() == question.answer.lower()]
            assert len(matches) == 1

    def test_option_count_enforced(self):
        with pytest.raises(OptionCountError) as exc_info:
            LenientValidator().validate([_mcq(), _mcq(options=["3", "4", "5"])])
        assert exc_info.value.index == 2

    def test_fast_policy_only_requires_options(self):
        batch = LenientValidator(enforce_option_count=False).validate([_mcq(options=["3", "4", "5"])])
        assert batch.questions[0].options == ["3", "4", "5"]

        with pytest.raises(OptionCountError):
            LenientValidator(enforce_option_count=False).validate([_mcq(options=[])])

    @pytest.mark.parametrize(
        "answer, expected",
        [("true", "True"), ("FALSE", "False"), ("It is false.", "False"), (True, "True"), ("maybe", "True")],
    )
    def test_true_false_normalization(self, answer, expected):
        raw = {"question": "The sky is green.", "type": "true_false", "answer": answer, "options": ["Yes", "No"]}
        batch = LenientValidator().validate([raw])
        assert batch.questions[0].options == ["True", "False"]
        assert batch.questions[0].answer == expected

    def test_unmatched_true_false_is_recorded(self):
        batch = LenientValidator().validate([{"question": "Q", "type": "true_false", "answer": "maybe"}])
        assert len(batch.fixes) == 1

    def test_short_answer_options_cleared(self):
        raw = {"question": "Define osmosis.", "type": "short_answer",
               "answer": "Diffusion of water across a membrane", "options": ["x"]}
        question = LenientValidator().validate([raw]).questions[0]
        assert question.options == []
        assert question.answer == "Diffusion of water across a membrane"

    def test_defaults(self):
        question = LenientValidator().validate(
            [{"question": "Q", "type": "mcq", "options": ["a", "b", "c", "d"], "answer": "a"}]
        ).questions[0]
        assert question.difficulty.value == "medium"
        assert question.topic == "General"
        assert question.explanation == DEFAULT_EXPLANATION

    def test_unknown_difficulty_defaults_to_medium(self):
        question = LenientValidator().validate([_mcq(difficulty="impossible")]).questions[0]
        assert question.difficulty.value == "medium"

    @pytest.mark.parametrize("missing", ["question", "answer", "type"])
    def test_required_fields(self, missing):
        raw = _mcq()
        raw[missing] = ""
        with pytest.raises(IncompleteQuestionError) as exc_info:
            LenientValidator().validate([_mcq(), raw])
        assert exc_info.value.index == 2

    def test_unsupported_type(self):
        with pytest.raises(ValidationError):
            LenientValidator().validate([_mcq(type="essay")])

    def test_non_object_question(self):
        with pytest.raises(IncompleteQuestionError):
            LenientValidator().validate(["just a string"])
