from __future__ import annotations
import logging
from datetime import timedelta

from .models import utcnow
from .store import Store


logger = logging.getLogger(__name__)


def abandon_stale_conversations(store: Store, idle_hours: int) -> int:
	# Conversations left active with no new messages are never analysed
	threshold = utcnow() - timedelta(hours=idle_hours)
	abandoned = store.abandon_conversations_idle_since(threshold)
	if abandoned:
		logger.info("Marked %d idle conversation(s) as abandoned", abandoned)
	return abandoned
