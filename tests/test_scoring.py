import pytest
from bson import ObjectId

from quiz_backend.utils.scoring import percentage, score_answers


def question(text, options, answer):
    return {"_id": ObjectId(), "questionText": text, "options": options, "correctAnswer": answer}


class TestPercentage:

    def test_whole_values(self):
        assert percentage(0, 4) == 0
        assert percentage(3, 4) == 75
        assert percentage(4, 4) == 100

    def test_halves_round_up(self):
        assert percentage(1, 8) == 13
        assert percentage(1, 3) == 33
        assert percentage(2, 3) == 67

    def test_zero_total_rejected(self):
        with pytest.raises(ValueError):
            percentage(0, 0)


class TestScoreAnswers:

    def setup_method(self):
        self.questions = [
            question("2+2?", ["3", "4"], "4"),
            question("Sky?", ["Blue", "Green"], "Blue"),
            question("Sun?", ["Star", "Planet"], "Star"),
        ]

    def ids(self):
        return [str(q["_id"]) for q in self.questions]

    def test_all_correct(self):
        q1, q2, q3 = self.ids()
        correct, stored, details = score_answers(
            self.questions, [(q1, "4"), (q2, "Blue"), (q3, "Star")]
        )
        assert correct == 3
        assert all(d["isCorrect"] for d in details)
        assert [s["questionId"] for s in stored] == [q["_id"] for q in self.questions]

    def test_unanswered_counts_as_wrong_and_is_stored(self):
        q1, _, _ = self.ids()
        correct, stored, details = score_answers(self.questions, [(q1, "4")])

        assert correct == 1
        assert len(stored) == 3
        assert stored[1]["selectedAnswer"] is None
        assert details[2]["isCorrect"] is False

    def test_answers_outside_quiz_are_ignored(self):
        correct, stored, _ = score_answers(self.questions, [(str(ObjectId()), "4")])
        assert correct == 0
        assert all(s["selectedAnswer"] is None for s in stored)

    def test_repeated_question_keeps_last_answer(self):
        q1, _, _ = self.ids()
        correct, _, _ = score_answers(self.questions, [(q1, "4"), (q1, "3")])
        assert correct == 0

    def test_match_is_exact(self):
        _, q2, _ = self.ids()
        correct, _, _ = score_answers(self.questions, [(q2, "blue")])
        assert correct == 0
