from interview_assistant.interview.models import Answer
from interview_assistant.interview.scorer import recommendation_for


def _performance_band(final_score: int) -> str:
    if final_score >= 8:
        return "excellent"
    if final_score >= 6:
        return "good"
    if final_score >= 4:
        return "adequate"
    return "developing"


async def generate_summary(candidate_name: str, answers: list[Answer], final_score: int) -> str:
    scores = [int(a.score or 0) for a in answers]
    avg_score = sum(scores) / len(scores) if scores else 0.0

    if avg_score >= 6:
        strengths = "demonstrated solid technical knowledge and problem-solving skills"
    else:
        strengths = "showed basic understanding of key concepts"

    return (
        f"{candidate_name or 'The candidate'} completed the technical interview with an overall score of "
        f"{final_score}/10, demonstrating {_performance_band(final_score)} full-stack development skills. "
        f"The candidate {strengths} throughout the assessment. "
        f"Based on the performance, our recommendation is: {recommendation_for(final_score)}."
    )
