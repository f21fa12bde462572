def percentage(correct, total):
    """Whole-number percentage, halves rounded up."""
    if total <= 0:
        raise ValueError("total must be positive")
    return (correct * 200 + total) // (2 * total)


def score_answers(questions, answers):
    """Grade ``answers`` against the quiz ``questions``.

    ``questions`` are question documents in quiz order; ``answers`` is a list of
    ``(question_id, selected_answer)`` pairs with string ids. Answers to
    questions outside the quiz are ignored; a repeated id keeps the last answer.
    Returns ``(correct_count, stored_answers, detailed_results)`` with one stored
    answer per quiz question.
    """
    selected = {}
    for question_id, answer in answers:
        selected[question_id] = answer

    correct_count = 0
    stored = []
    details = []
    for question in questions:
        user_answer = selected.get(str(question["_id"]))
        is_correct = user_answer is not None and user_answer == question["correctAnswer"]
        if is_correct:
            correct_count += 1

        stored.append({"questionId": question["_id"], "selectedAnswer": user_answer})
        details.append({
            "questionId": question["_id"],
            "questionText": question["questionText"],
            "options": question["options"],
            "userAnswer": user_answer,
            "correctAnswer": question["correctAnswer"],
            "isCorrect": is_correct,
        })

    return correct_count, stored, details
