"""Interview question bank: 62 questions across 8 life stages."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Stage:
    id: str
    name: str
    questions: tuple[str, ...]


STAGES: tuple[Stage, ...] = (
    Stage(
        "early-childhood",
        "Early Childhood",
        (
            "What is your earliest memory? Where were you, and what do you remember seeing, hearing, or feeling?",
            "Describe the home you grew up in. What did it look like? What did it smell like?",
            "Who were the most important people in your early life? What made them special?",
            "What was your favorite thing to do as a small child?",
            "Did you have a favorite toy, blanket, or comfort object? Tell me about it.",
            "What family traditions or routines do you remember from your early years?",
            "Was there a moment from your childhood that you think shaped who you became?",
            "What is a funny or unexpected story from when you were very young?",
        ),
    ),
    Stage(
        "school-years",
        "School Years",
        (
            "What do you remember about your first day of school?",
            "Who was your best friend in school? How did you meet?",
            "Which teacher had the biggest impact on you, and why?",
            "What subjects did you love? What subjects did you dread?",
            "Tell me about a proud moment from your school years.",
            "Were you ever in trouble at school? What happened?",
            "What was the social world of your school like? Where did you fit in?",
            "Is there a lesson you learned during school that stuck with you for life?",
        ),
    ),
    Stage(
        "coming-of-age",
        "Coming of Age",
        (
            "What was your first real job? What was it like?",
            "When did you first feel like an adult? What triggered that feeling?",
            "Tell me about a moment when you realized the world was bigger than you thought.",
            "What music, books, or movies shaped you during this time?",
            "Did you leave home? What was that experience like?",
            "Who were your closest friends as a young adult? What did you do together?",
            "Was there a risk you took that changed the direction of your life?",
            "What did you dream about becoming when you were young?",
        ),
    ),
    Stage(
        "love-relationships",
        "Love & Relationships",
        (
            "Tell me the story of how you met the love of your life.",
            "What was your first date like? Where did you go?",
            "When did you know this was the person for you?",
            "What is the best piece of relationship advice you've ever received or learned?",
            "Describe a moment of deep connection with someone you love.",
            "How has your understanding of love changed over the years?",
            "Tell me about a friendship that has stood the test of time.",
            "Is there someone who believed in you when you didn't believe in yourself?",
        ),
    ),
    Stage(
        "career-work",
        "Career & Work",
        (
            "Walk me through your career path. How did you end up where you did?",
            "What was your proudest professional accomplishment?",
            "Tell me about a mentor or colleague who changed how you think.",
            "What was the hardest decision you ever made at work?",
            "Did you ever have a job you hated? What made it so bad?",
            "What skills or values did your work teach you?",
            "If you could do your career over, would you change anything?",
            'What does "success" mean to you? Has that definition changed?',
        ),
    ),
    Stage(
        "family-parenthood",
        "Family & Parenthood",
        (
            "Tell me about when you found out you were going to be a parent. What did you feel?",
            "What kind of parent did you want to be? Did that match reality?",
            "Describe a moment with your children that you'll never forget.",
            "What is the hardest thing about being a parent?",
            "What traditions did you create for your own family?",
            "How is your relationship with your parents or siblings now compared to when you were young?",
            "What do you most want your children to know about your life?",
            "Tell me about a time your family surprised you, for better or worse.",
        ),
    ),
    Stage(
        "challenges-growth",
        "Challenges & Growth",
        (
            "What is the hardest thing you've ever been through? How did you get through it?",
            "Have you ever experienced a loss that changed you? Tell me about it.",
            "Was there a failure that taught you something important?",
            "Tell me about a time you had to start over.",
            "What is something you've forgiven, in yourself or someone else?",
            "How have your beliefs or values changed over the course of your life?",
        ),
    ),
    Stage(
        "reflections-wisdom",
        "Reflections & Wisdom",
        (
            "If you could talk to yourself at 20 years old, what would you say?",
            "What are you most proud of in your life?",
            "What brings you the most joy right now?",
            "Is there something you wish more people understood about your generation?",
            "What does a good day look like for you now?",
            "What legacy do you hope to leave behind?",
            "If your life were a book, what would the title be?",
            "What is the most important thing you've learned in your life?",
        ),
    ),
)

TOTAL_QUESTIONS = sum(len(s.questions) for s in STAGES)


def get_question(stage_index: int, question_index: int) -> dict | None:
    """Memory-shaped fields for one question, or None when out of range."""
    if not 0 <= stage_index < len(STAGES):
        return None
    stage = STAGES[stage_index]
    if not 0 <= question_index < len(stage.questions):
        return None
    return {
        "stage": stage.name,
        "stageId": stage.id,
        "question": stage.questions[question_index],
        "stageIndex": stage_index,
        "questionIndex": question_index,
        "number": absolute_index(stage_index, question_index) + 1,
    }


def absolute_index(stage_index: int, question_index: int) -> int:
    return sum(len(s.questions) for s in STAGES[:stage_index]) + question_index


def progress(memories: list[dict]) -> dict:
    """Count distinct answered questions in ``memories`` and find the next open one.

    ``next`` is the first unanswered question in interview order, or None
    once every question has an answer.
    """
    answered = {
        (m.get("stageId"), m.get("questionIndex"))
        for m in memories
        if str(m.get("answer") or "").strip()
    }
    next_question = None
    for stage_index, stage in enumerate(STAGES):
        open_indexes = [i for i in range(len(stage.questions)) if (stage.id, i) not in answered]
        if open_indexes:
            next_question = get_question(stage_index, open_indexes[0])
            break
    return {"answered": len(answered), "total": TOTAL_QUESTIONS, "next": next_question}


def catalogue() -> dict:
    return {
        "stages": [{**asdict(s), "questions": list(s.questions)} for s in STAGES],
        "totalQuestions": TOTAL_QUESTIONS,
    }
