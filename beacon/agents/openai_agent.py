"""OpenAI-backed assignment proposals."""

import asyncio
import json
import logging
import os
from collections.abc import Awaitable, Callable, Mapping
from typing import Optional

import openai
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..assignment.models import Assignment
from ..recovery.policies import (
    RetryableError,
    RetryConfig,
    RetryPolicy,
    is_retryable_status,
    retry_with_backoff,
)
from .base import AgentError, AssignmentRequest, BaseAssignmentAgent
from .prompts import PromptCache

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"

OPERATION_MODEL_ENV = {
    "task_assignment": "OPENAI_MODEL_TASK_ASSIGNMENT",
}

RESPONSE_FORMAT = {
    "type": "json_schema",
    "json_schema": {
        "name": "task_assignment_plan",
        "strict": True,
        "schema": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "assignments": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "additionalProperties": False,
                        "properties": {
                            "taskId": {"type": "string", "minLength": 1},
                            "assigneeUserId": {"type": "string", "minLength": 1},
                        },
                        "required": ["taskId", "assigneeUserId"],
                    },
                },
            },
            "required": ["assignments"],
        },
    },
}


class ProposedAssignment(BaseModel):
    """One entry of the model's answer."""

    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(alias="taskId", min_length=1)
    assignee_user_id: str = Field(alias="assigneeUserId", min_length=1)


class AssignmentProposal(BaseModel):
    """Shape the model must answer with."""

    assignments: list[ProposedAssignment]


def resolve_model(
    config: Mapping,
    operation: str = "task_assignment",
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Pick the model for an operation.

    Order: configured model, operation-specific env var, OPENAI_MODEL, default.
    """
    env = os.environ if environ is None else environ
    if config.get("model"):
        return config["model"]

    operation_model = env.get(OPERATION_MODEL_ENV.get(operation, ""), "")
    if operation_model.strip():
        return operation_model.strip()

    general = env.get("OPENAI_MODEL", "")
    if general.strip():
        return general.strip()

    return DEFAULT_MODEL


def request_tuning(model: str) -> dict:
    """Extra request options for a model.

    Sampling is pinned to temperature 0 except for gpt-5 models, which reject it.
    """
    if model.strip().lower().startswith("gpt-5"):
        return {}
    return {"temperature": 0}


def build_user_payload(request: AssignmentRequest) -> dict:
    """Serialize the request the way the prompt describes it."""
    return {
        "projectId": request.project_id,
        "projectName": request.project_name,
        "projectDescription": request.project_description,
        "tasks": [
            {
                "id": task.id,
                "status": task.status.value,
                "difficultyPoints": task.difficulty_points,
                "assigneeUserId": task.assignee_user_id,
            }
            for task in request.tasks
        ],
        "members": [
            {
                "userId": member.user_id,
                "currentLoad": member.current_load,
                "skills": [
                    {"skillId": skill_id, "level": level}
                    for skill_id, level in member.skills.items()
                ],
            }
            for member in request.members
        ],
        "taskRequirements": [
            {"taskId": req.task_id, "skillId": req.skill_id, "weight": req.weight}
            for req in request.requirements
        ],
    }


def parse_proposal(content: Optional[str]) -> list[Assignment]:
    """Parse the model's JSON answer.

    Raises:
        AgentError: If the answer is empty or does not match the schema
    """
    if not content:
        raise AgentError("Empty assignment response")
    try:
        proposal = AssignmentProposal.model_validate_json(content)
    except ValidationError as e:
        raise AgentError(f"Assignment response did not match schema: {e}") from e

    return [
        Assignment(task_id=entry.task_id, assignee_user_id=entry.assignee_user_id)
        for entry in proposal.assignments
    ]


class OpenAIAssignmentAgent(BaseAssignmentAgent):
    """Ask an OpenAI chat model for an assignment plan."""

    def __init__(
        self,
        config: dict,
        prompts: Optional[PromptCache] = None,
        client=None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """Initialize OpenAI agent.

        Args:
            config: AI config dict (model, api_key_env, retry settings)
            prompts: Prompt cache; a fresh one over ``prompt_dir`` otherwise
            client: Pre-built ``openai.AsyncOpenAI``-compatible client
            sleep: Async sleep used between retries
            environ: Environment mapping (os.environ by default)
        """
        super().__init__(config)
        self.environ = os.environ if environ is None else environ
        self.model = resolve_model(config, "task_assignment", self.environ)
        self.api_key_env = config.get("api_key_env") or "OPENAI_API_KEY"
        self.prompts = prompts or PromptCache(config.get("prompt_dir"))
        self.retry_policy = RetryPolicy(
            RetryConfig(
                max_retries=config.get("max_retries", 3),
                base_backoff_ms=config.get("base_backoff_ms", 400),
                max_backoff_ms=config.get("max_backoff_ms", 12_000),
                max_server_delay_ms=config.get("max_server_delay_ms", 60_000),
            )
        )
        self._client = client
        self._sleep = sleep

    def _get_client(self):
        if self._client is None:
            api_key = self.environ.get(self.api_key_env)
            if not api_key:
                raise AgentError(f"API key not found: {self.api_key_env}")
            # Retries are driven by our own policy so server hints are honored.
            self._client = openai.AsyncOpenAI(api_key=api_key, max_retries=0)
        return self._client

    async def _request_once(self, client, messages: list[dict]) -> Optional[str]:
        """Send one chat completion request, classifying failures."""
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                response_format=RESPONSE_FORMAT,
                **request_tuning(self.model),
            )
        except openai.APIStatusError as e:
            if is_retryable_status(e.status_code):
                raise RetryableError(
                    f"HTTP {e.status_code}", status=e.status_code, headers=dict(e.response.headers)
                ) from e
            raise AgentError(f"OpenAI request rejected with HTTP {e.status_code}") from e
        except openai.APIConnectionError as e:
            raise RetryableError(f"Connection error: {e}") from e
        except openai.OpenAIError as e:
            raise AgentError(f"OpenAI request failed: {type(e).__name__}: {e}") from e

        if not response.choices:
            return None
        return response.choices[0].message.content

    async def propose(self, request: AssignmentRequest) -> list[Assignment]:
        """Propose assignments using the chat completions API."""
        client = self._get_client()
        messages = [
            {"role": "system", "content": self.prompts.get("task_assignment")},
            {"role": "user", "content": json.dumps(build_user_payload(request))},
        ]

        logger.info(f"Requesting assignment plan from {self.model}")
        try:
            content = await retry_with_backoff(
                "task_assignment",
                lambda: self._request_once(client, messages),
                self.retry_policy,
                sleep=self._sleep,
            )
        except RetryableError as e:
            raise AgentError(f"OpenAI assignment request failed: {e}") from e

        return parse_proposal(content)
