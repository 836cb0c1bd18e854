"""LLM agent that generates weekly prediction text."""

from datetime import date
from typing import List, Optional

import anthropic

from agent_picks.agents.prompts.system_prompts import build_week_request, get_system_prompt
from agent_picks.utils.config_loader import ConfigLoader, get_config
from agent_picks.utils.errors import ErrorCode, PipelineError
from agent_picks.utils.logger import setup_logger
from agent_picks.utils.weeks import WeekSchedule, current_season_start, week_date_range


logger = setup_logger(__name__)


class PredictionAgent:
    """Requests narrative predictions plus a structured payload from Claude."""

    def __init__(
        self,
        config: Optional[ConfigLoader] = None,
        schedule: Optional[WeekSchedule] = None,
        client: Optional[anthropic.AsyncAnthropic] = None
    ):
        """Initialize the agent.

        Args:
            config: Configuration (defaults to the global config)
            schedule: Season schedule used to describe the requested week
            client: Pre-built async Anthropic client
        """
        config = config or get_config()
        self.schedule = schedule
        self.model_name = config.get('anthropic.model', 'claude-sonnet-4-5')
        self.max_tokens = config.get('anthropic.max_tokens', 8000)
        self.temperature = config.get('anthropic.temperature', 0.3)
        self.client = client or anthropic.AsyncAnthropic(api_key=config.anthropic_api_key)
        self.system_prompt = get_system_prompt()

    def _week_dates(self, week: int):
        week_range = self.schedule.week_info(week) if self.schedule else None
        if week_range is not None:
            return week_range.start, week_range.end
        season_start = (self.schedule.season_start if self.schedule else None) or current_season_start(date.today())
        return week_date_range(week, season_start)

    async def generate_predictions(self, week: int, matchups: List[str], notes: str = "") -> str:
        """Ask the model for one week's predictions.

        Args:
            week: NFL week number
            matchups: Games formatted as "Away @ Home"
            notes: Extra context appended to the request

        Returns:
            Raw response text, ready for the agent text parser

        Raises:
            PipelineError: AGENT_ERROR when the API call fails
        """
        start, end = self._week_dates(week)
        user_prompt = build_week_request(week, start.isoformat(), end.isoformat(), matchups, notes)
        logger.info(f"Requesting week {week} predictions for {len(matchups)} games from {self.model_name}")

        try:
            message = await self.client.messages.create(
                model=self.model_name,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=self.system_prompt,
                messages=[{"role": "user", "content": user_prompt}]
            )
        except anthropic.APIError as e:
            logger.error(f"Prediction request failed: {e}")
            raise PipelineError(ErrorCode.AGENT_ERROR, f"Prediction request failed: {e}") from e

        text = "".join(block.text for block in message.content if getattr(block, 'type', 'text') == 'text')
        logger.debug(f"Received {len(text)} characters from agent")
        return text
