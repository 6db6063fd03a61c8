"""
Builds catalog questions from raw trivia provider payloads
"""
import hashlib
import html
import random
from typing import List

from quizboard.schemas.quiz import Option, Question, RawQuestion


def make_question_id(question: Question) -> str:
    """
    Content-derived id: sha1 over the prompt and the option texts in order

    Identity is sensitive to option order, so the same trivia item shuffled
    differently yields a different id.
    """
    key = question.question + "".join("|" + option.text for option in question.options)
    return "q_" + hashlib.sha1(key.encode("utf-8")).hexdigest()


def build_question(raw: RawQuestion, rng: random.Random = None) -> Question:
    """Unescape, shuffle and letter the options of one raw question"""
    rng = rng or random
    choices = [(html.unescape(text), False) for text in raw.incorrect_answers]
    choices.append((html.unescape(raw.correct_answer), True))
    rng.shuffle(choices)

    options = []
    correct_index = -1
    for idx, (text, is_correct) in enumerate(choices):
        options.append(Option(letter=chr(ord("A") + idx), text=text))
        if is_correct:
            correct_index = idx

    question = Question(
        question=html.unescape(raw.question),
        options=options,
        correct_index=correct_index,
    )
    question.question_id = make_question_id(question)
    return question


def build_questions(raw_questions: List[RawQuestion], rng: random.Random = None) -> List[Question]:
    return [build_question(raw, rng) for raw in raw_questions]
