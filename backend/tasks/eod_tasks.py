import logging

from sqlalchemy.orm import Session

from crud import balances
from database import SessionLocal

logger = logging.getLogger(__name__)


def reset_today_cash():
    """
    Zero todayCash on the TotalCapital row once the business day has rolled over.

    Runs at midnight in APP_TIMEZONE. The ledger engine and the capital read
    both apply the same rollover on their own, so a missed run only delays
    the stored value, never the figure users see.
    """
    logger.info("Starting end-of-day todayCash reset.")
    db: Session = SessionLocal()
    try:
        capital = balances.get_total_capital(db, lock=True)
        if balances.roll_over_today_cash(capital):
            db.commit()
            logger.info(f"todayCash reset to 0 on capital record {capital.id}.")
        else:
            db.rollback()
            logger.info("todayCash already current, nothing to reset.")
    except Exception as e:
        logger.error(f"Error during end-of-day todayCash reset: {e}", exc_info=True)
        db.rollback()
    finally:
        db.close()
