"""LLM-backed ranking oracle - prompt compilation and response validation."""

import json
import logging
import re
from dataclasses import asdict

from drift.core.focus import SELECTION_POLICY, FocusSelection, StatusItem, TaskSummary, TimeContext
from drift.ports.llm_service import LLMService
from drift.ports.ranking_oracle import OracleError

logger = logging.getLogger(__name__)

JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def compile_focus_prompt(candidates: list[TaskSummary], context: TimeContext) -> str:
    """Compile the daily planning prompt."""
    tasks_json = json.dumps([asdict(c) for c in candidates], indent=2)
    return f"""You are an expert productivity coach for someone with ADHD.

Today is {context.weekday}, {context.date}. The current time is {context.now.strftime("%H:%M")}.

Here is the user's active task list:
{tasks_json}

GOAL: Create a realistic, motivating plan for today.
{SELECTION_POLICY}

Select the IDs of the tasks to focus on today.

Respond with JSON only, in exactly this shape:
{{"taskIds": ["<id>", ...], "reasoning": "<one or two encouraging sentences>"}}
"""


def compile_status_prompt(items: list[StatusItem], time_of_day: str) -> str:
    """Compile the check-in message prompt."""
    overdue = sum(1 for i in items if i.is_overdue)
    high = sum(1 for i in items if i.priority == "high")
    return f"""You are a friendly, encouraging task assistant. Generate a brief, warm check-in message (1-2 sentences max).

Tone: Supportive friend, not parental or aggressive. Encouraging but not pushy.
Time: {time_of_day}
Keep it natural and conversational. No emojis at the start.

User has {len(items)} pending tasks. {overdue} are overdue. {high} are high priority. Generate a friendly {time_of_day} check-in.
"""


def parse_focus_response(text: str) -> FocusSelection:
    """
    Validate an oracle answer against the selection schema.

    Raises OracleError for anything other than {"taskIds": [str], "reasoning": str}.
    """
    match = JSON_OBJECT_RE.search(text or "")
    if not match:
        raise OracleError("No JSON object in oracle response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise OracleError(f"Malformed oracle response: {e}") from e

    if not isinstance(data, dict):
        raise OracleError("Oracle response is not an object")
    task_ids = data.get("taskIds")
    reasoning = data.get("reasoning")
    if not isinstance(task_ids, list) or not all(isinstance(i, str) for i in task_ids):
        raise OracleError("Oracle response 'taskIds' must be a list of strings")
    if not isinstance(reasoning, str):
        raise OracleError("Oracle response 'reasoning' must be a string")
    return FocusSelection(task_ids=task_ids, reasoning=reasoning.strip())


class LLMRankingOracle:
    """
    Ranking oracle on top of any LLMService.

    Implements RankingOracle protocol. LLM failures and schema violations are
    both reported as OracleError so callers have a single fallback path.
    """

    def __init__(self, llm: LLMService):
        self.llm = llm

    def _generate(self, prompt: str) -> str:
        try:
            return self.llm.generate(prompt)
        except RuntimeError as e:
            raise OracleError(str(e)) from e

    def select_focus_tasks(self, candidates: list[TaskSummary], context: TimeContext) -> FocusSelection:
        prompt = compile_focus_prompt(candidates, context)
        selection = parse_focus_response(self._generate(prompt))
        logger.info(f"Oracle selected {len(selection.task_ids)} of {len(candidates)} tasks")
        return selection

    def summarize_status(self, items: list[StatusItem], time_of_day: str) -> str:
        message = self._generate(compile_status_prompt(items, time_of_day)).strip()
        if not message:
            raise OracleError("Empty check-in message")
        return message
