"""
One on-demand run of the tour statistics job: snapshot data in,
artifact out.
"""

import logging
from typing import Dict, Optional

from .aggregator import TourStatisticsCalculator
from .config import Settings, setup_logging
from .publish import publish_tour_statistics
from .sources import SnapshotDataSource

logger = logging.getLogger(__name__)


def run(latest_show_date, settings: Optional[Settings] = None) -> Dict:
    """Compute and publish statistics for the tour of latest_show_date."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    logger.info(f"Tour statistics update starting (data: {settings.data_dir})")
    source = SnapshotDataSource(settings.data_dir)
    calculator = TourStatisticsCalculator(source, top_k=settings.top_k)

    try:
        return publish_tour_statistics(calculator, latest_show_date, settings.output_path)
    except Exception:
        logger.exception(f"Tour statistics update failed; kept {settings.output_path} as it was")
        raise
