"""Entry point for year-in-review generation"""
import json
import logging
import os
import sys
import traceback
from typing import Dict, Optional

from sipgate_review.config import settings
from sipgate_review.db import db
from sipgate_review.review import build_year_in_review
from sipgate_review.services.sipgate import UnauthorizedError

logging.basicConfig(level=settings.LOG_LEVEL, format='%(message)s')
logger = logging.getLogger(__name__)

def share_review(review) -> Optional[Dict[str, str]]:
    """Publish an anonymized copy; a failure is logged and the review is still written."""
    try:
        db.init()
        try:
            with db.share_store() as store:
                share_id, share_url = store.share_review(review)
        finally:
            db.dispose()
    except Exception as e:
        logger.exception(f"Sharing the review failed: {e}")
        return None
    return {'id': share_id, 'url': share_url}

def run() -> int:
    """Build the review for the configured token and write it to OUTPUT_DIR."""
    try:
        # Log config (excluding sensitive data)
        logger.info("Using configuration:")
        safe_config = settings.model_dump(exclude={'SIPGATE_TOKEN'})
        logger.info(json.dumps(safe_config, indent=2))

        sipgate = settings.sipgate_settings
        review = build_year_in_review(
            sipgate.token,
            year=settings.REVIEW_YEAR,
            base_url=sipgate.base_url,
            timeout=sipgate.timeout_seconds
        )
        if review is None:
            raise UnauthorizedError("SIPGATE_TOKEN is not set")

        output = review.model_dump(mode='json', by_alias=True)

        if settings.SHARE_REVIEW and review.has_data:
            share = share_review(review)
            if share:
                output['share'] = share

        os.makedirs(settings.OUTPUT_DIR, exist_ok=True)
        output_path = os.path.join(settings.OUTPUT_DIR, "review.json")
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2, ensure_ascii=False)

        logger.info(f"Year in review written to {output_path}: {review.totals}")
        return 0

    except UnauthorizedError as e:
        logger.error(f"sipgate rejected the credentials ({e}). Sign in again to refresh the token.")
        return 2
    except Exception as e:
        logger.error(f"Error during review generation: {e}")
        traceback.print_exc()
        return 1

if __name__ == "__main__":
    sys.exit(run())
