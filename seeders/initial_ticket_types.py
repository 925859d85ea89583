from sqlalchemy.orm import Session

from core.code_generator import generate_unique_code
from core.log import logger
from models.TicketType import PAIS_CATEGORY
from repository.ticket_type import (
    get_ticket_type_by_code,
    get_ticket_type_names_by_category,
    insert_ticket_type,
)
from settings import CODE_GENERATION_MAX_ATTEMPTS, DEFAULT_MIN_THRESHOLD

PAIS_IMAGE_BASE_URL = "https://www.pais.co.il"

# (name, price, image path) as listed on the Pais scratch card catalog
PAIS_TICKETS = [
    # 5-15
    ("אבא גנוב", 10, "/download/hishgadTickets/97_0_1.jpg"),
    ("ישראל שלי", 10, "/download/hishgadTickets/95_43_6.jpg"),
    ("חגיגה בסנוקר", 10, "/download/hishgadTickets/94_53_4.jpg"),
    ("יהיה טוב", 10, "/download/hishgadTickets/93_29_24.png"),
    ("הדגל שלנו", 10, "/download/hishgadTickets/90_20_6.jpg"),
    ("מעומק הלב", 10, "/download/hishgadTickets/88_58_4.png"),
    ("כפרה", 10, "/download/hishgadTickets/86_42_18.jpg"),
    ("HONEY", 10, "/download/hishgadTickets/83_21_54.jpg"),
    ("מילה טובה", 10, "/download/hishgadTickets/81_27_50.jpg"),
    ("פורים רייב", 10, "/download/hishgadTickets/71_38_45.jpg"),
    ("סחתיין", 10, "/download/hishgadTickets/70_23_31.jpg"),
    ("הכל דבש", 10, "/download/hishgadTickets/67_39_15.jpg"),
    ("מזל גדול", 10, "/download/hishgadTickets/3_47_34.jpg"),
    ("דיבידנד", 10, "/download/hishgadTickets/7_34_56.png"),
    ("בורסה", 10, "/download/hishgadTickets/8_2_57.jpg"),
    ("מזלות", 10, "/download/hishgadTickets/9_47_38.jpg"),
    ("כדורסל", 10, "/download/hishgadTickets/10_6_54.jpg"),
    ("נס חנוכה", 10, "/download/hishgadTickets/12_32_17.jpg"),
    ("קזינו", 10, "/download/hishgadTickets/20_5_27.jpg"),
    ("סוס מנצח", 10, "/download/hishgadTickets/21_9_28.jpg"),
    # 20-30
    ("קריפטו", 25, "/download/hishgadTickets/91_0_24.jpg"),
    ("Money Time", 25, "/download/hishgadTickets/31_32_20.jpg"),
    ("ביוטי", 25, "/download/hishgadTickets/89_1_8.jpg"),
    ("קולולו", 25, "/download/hishgadTickets/87_14_51.jpg"),
    ("עיניים שלי", 25, "/download/hishgadTickets/78_5_16.jpg"),
    ("STORY", 25, "/download/hishgadTickets/77_33_56.jpg"),
    ("מזל טוב", 25, "/download/hishgadTickets/22_0_22.jpg"),
    ("21 BlackJack", 25, "/download/hishgadTickets/23_31_2.jpg"),
    ("אואזיס", 25, "/download/hishgadTickets/24_12_23.jpg"),
    ("cash", 25, "/download/hishgadTickets/25_25_10.jpg"),
    ("שיקגו", 25, "/download/hishgadTickets/26_23_44.jpg"),
    ("חג שמח", 25, "/download/hishgadTickets/27_31_22.jpg"),
    ("אס זוכה קינג בוכה", 25, "/download/hishgadTickets/28_37_43.jpg"),
    ("הקלף", 25, "/download/hishgadTickets/29_53_35.jpg"),
    ("מונטה קרלו", 25, "/download/hishgadTickets/39_3_47.jpg"),
    ("כספת", 25, "/download/hishgadTickets/38_22_55.jpg"),
    # 40+
    ("הקלף הסודי", 50, "/download/hishgadTickets/96_23_9.jpg"),
    ("No.1", 50, "/download/hishgadTickets/92_22_38.jpg"),
    ("הכל זהב", 50, "/download/hishgadTickets/79_28_35.jpg"),
    ("מכונת המזל", 50, "/download/hishgadTickets/41_41_27.jpg"),
    ("מלכת הלבבות", 50, "/download/hishgadTickets/42_26_49.jpg"),
    ("רולטה", 50, "/download/hishgadTickets/43_46_52.jpg"),
    ("אס=פרס", 50, "/download/hishgadTickets/44_55_45.jpg"),
    ("שווה זהב", 50, "/download/hishgadTickets/45_6_47.jpg"),
    ("BIG", 50, "/download/hishgadTickets/48_49_2.jpg"),
    ("מגה כסף", 50, "/download/hishgadTickets/51_33_44.jpg"),
]


def initial_ticket_types(db: Session, is_commit: bool = True) -> int:
    """Seed the Pais catalog with no stock, skipping names already present."""
    existing_names = get_ticket_type_names_by_category(
        db=db, ticket_category=PAIS_CATEGORY
    )
    created = 0
    for name, price, image in PAIS_TICKETS:
        if name in existing_names:
            logger.info(f"Skipped (already exists): {name}")
            continue
        code = generate_unique_code(
            PAIS_CATEGORY,
            code_exists=lambda candidate: get_ticket_type_by_code(db=db, code=candidate)
            is not None,
            max_attempts=CODE_GENERATION_MAX_ATTEMPTS,
        )
        insert_ticket_type(
            db=db,
            name=name,
            price=price,
            code=code,
            min_threshold=DEFAULT_MIN_THRESHOLD,
            ticket_category=PAIS_CATEGORY,
            color="blue",
            image_url=image if image.startswith("http") else f"{PAIS_IMAGE_BASE_URL}{image}",
            is_commit=False,
        )
        # flush so the next code lookup sees this one
        db.flush()
        existing_names.add(name)
        created += 1

    if is_commit:
        db.commit()
    logger.info(f"Pais tickets created: {created}")
    return created
