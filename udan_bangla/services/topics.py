from typing import List, Optional
from ..errors import UnknownTopic
from ..models import TopicDef

WBJEE = "WBJEE"

GENERAL_TOPICS: List[TopicDef] = [
    TopicDef(id="wbcs-history", title="Bengal History", description="Ancient, Medieval, and Modern history of Bengal region.", icon_name="landmark"),
    TopicDef(id="wb-geo", title="WB Geography", description="Rivers, soil, climate, and demographics of West Bengal.", icon_name="map-pin"),
    TopicDef(id="polity", title="Indian Polity", description="Constitution, Panchayati Raj, and Governance.", icon_name="gavel"),
    TopicDef(id="bengali-lit", title="Bengali Literature", description="Famous authors, poems, and literary eras.", icon_name="book-open"),
    TopicDef(id="science", title="General Science", description="Physics, Chemistry, and Biology basics for competitive exams.", icon_name="flask"),
    TopicDef(id="math", title="Arithmetic", description="Quantitative aptitude and reasoning.", icon_name="calculator"),
]

WBJEE_TOPICS: List[TopicDef] = [
    TopicDef(id="wbjee-physics", title="Physics", description="Mechanics, Optics, Electromagnetism, and Modern Physics for Engineering.", icon_name="atom"),
    TopicDef(id="wbjee-chemistry", title="Chemistry", description="Physical, Organic, and Inorganic Chemistry.", icon_name="flask"),
    TopicDef(id="wbjee-math", title="Mathematics", description="Calculus, Algebra, Coordinate Geometry, and Trigonometry.", icon_name="calculator"),
]

def topics_for_exam(exam: Optional[str]) -> List[TopicDef]:
    if exam == WBJEE:
        return list(WBJEE_TOPICS)
    return list(GENERAL_TOPICS)

def all_topics() -> List[TopicDef]:
    return GENERAL_TOPICS + WBJEE_TOPICS

def get_topic(topic_id: str) -> TopicDef:
    for topic in all_topics():
        if topic.id == topic_id:
            return topic
    raise UnknownTopic(topic_id)

def prompt_context(topic: TopicDef, exam: Optional[str]) -> str:
    """Topic description handed to the question generator, with the exam/grade appended."""
    if exam == WBJEE:
        return f"{topic.title} specifically for WBJEE (West Bengal Joint Entrance Examination) Engineering Entrance"
    if exam:
        return f"{topic.title} for Class {exam} (West Bengal Board)"
    return topic.title
