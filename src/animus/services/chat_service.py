"""
Assistant chat service.
"""

import logging
from typing import Optional

from animus.core.config import CHAT_MAX_TOKENS
from animus.core.constants import CHAT_FALLBACK_REPLY, CHAT_SYSTEM_PROMPT
from animus.core.exceptions import RemoteFetchError
from animus.services.api_client import AnimusApiClient
from animus.shared_types.scan import CardiacScanData, ScanRecord, SymptomScanData
from animus.utils.dict_utils import first_non_empty

logger = logging.getLogger(__name__)


def build_followup_prompt(record: ScanRecord) -> str:
    """Prompt asking the assistant about a scan result ("Tell me more about: ...")."""
    analysis = record.analysis_result
    scan_data = record.scan_data
    topic = first_non_empty(
        analysis.analysis,
        analysis.summary,
        analysis.explanation,
        scan_data.diagnosis if isinstance(scan_data, CardiacScanData) else None,
        scan_data.symptoms if isinstance(scan_data, SymptomScanData) else None,
    ) or "my results"
    if topic.endswith("."):
        topic = topic[:-1]
    return f"Tell me more about: {topic}"


class ChatService:
    def __init__(self, api_client: AnimusApiClient, max_tokens: int = CHAT_MAX_TOKENS) -> None:
        super().__init__()
        self.api_client = api_client
        self.max_tokens = max_tokens

    async def ask(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """
        Ask the assistant a question.

        Never raises: any failure returns the fixed apology reply.
        """
        messages = [
            {"role": "system", "content": system_prompt or CHAT_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        try:
            return await self.api_client.chat(messages, self.max_tokens)
        except RemoteFetchError as e:
            logger.warning(f"Chat request failed: {e}")
            return CHAT_FALLBACK_REPLY
