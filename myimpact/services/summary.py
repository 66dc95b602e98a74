"""Self-review summary of merged pull requests via a chat-completions API.

The prompt is built deterministically from the PR list and forbids invented
metrics or outcomes; that constraint lives in the prompt only and the
response is returned verbatim. summarize() is the single network call and the
only coroutine in the package.
"""

import logging
from typing import List, Sequence

import httpx
from pydantic import BaseModel, ValidationError

from myimpact.errors import EmptyResponse, MissingCredential, MyImpactError, NoInput, ParseError, ServiceError
from myimpact.models import PullRequest
from myimpact.results import AiResult

DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.7

BODY_PREVIEW_CHARS = 200
ELLIPSIS = "..."
NO_DESCRIPTION = "No description"

PROMPT_TEMPLATE = """You are an expert at writing performance review self-assessments for software engineers.

CRITICAL RULES:
- NEVER invent or fabricate metrics, percentages, or statistics (like "15% improvement" or "reduced load time by 30%")
- NEVER claim outcomes you cannot verify from the PR data (like "increased user engagement" or "improved customer satisfaction")
- Only describe what the PRs actually show was built or changed
- Focus on the WORK DONE, not imagined business outcomes
- If you don't know the impact, describe the technical contribution without making up numbers

Based on the following merged pull requests from {date_range} at {org_name}, write a performance review summary that:

1. **Impact Summary** (2-3 sentences): High-level overview of what was built/improved. Describe the scope and nature of contributions without fabricating metrics.

2. **Key Achievements** (3-5 bullet points): Specific accomplishments based ONLY on what the PRs show. Mention the actual features, fixes, or improvements made. Do NOT add fake statistics.

3. **Technical Growth**: Areas of technical skill development demonstrated based on the types of work shown in the PRs.

4. **Collaboration & Leadership**: Only mention if clearly evidenced in PR descriptions (e.g., mentions of reviews, pair programming, helping others).

5. **Recommended Talking Points**: 2-3 specific PRs that seem significant based on their titles/descriptions. Explain why they might be good to discuss.

Here are the {count} merged pull requests:

{pr_list}

Write in first person. Be professional and confident, but STICK TO THE FACTS shown in the PRs. Describe what was built, not imagined outcomes. If a PR title suggests a feature, you can describe building that feature, but don't invent usage statistics or business metrics."""

LOG = logging.getLogger("myimpact.services.summary")


class _Message(BaseModel):
    content: str


class _Choice(BaseModel):
    message: _Message


class _ChatCompletion(BaseModel):
    choices: List[_Choice]


def truncate_body(body: str | None, limit: int = BODY_PREVIEW_CHARS) -> str:
    """Body preview: placeholder when absent, first limit chars plus ellipsis when longer."""
    if body is None:
        return NO_DESCRIPTION
    if len(body) > limit:
        return body[:limit] + ELLIPSIS
    return body


def format_pull_request(pr: PullRequest) -> str:
    return f"- **{pr.title}** ({pr.repository.name})\n  {truncate_body(pr.body)}\n  Merged: {pr.closed_at}"


def build_prompt(pull_requests: Sequence[PullRequest], date_range: str, org_name: str) -> str:
    """Fill the fact-constrained template; PR order is preserved."""
    pr_list = "\n\n".join(format_pull_request(pr) for pr in pull_requests)
    return PROMPT_TEMPLATE.format(
        date_range=date_range,
        org_name=org_name,
        count=len(pull_requests),
        pr_list=pr_list,
    )


class SummaryGenerator:
    """Chat-completions client for one-shot summaries.

    Pass client to reuse a connection pool or to inject a mock transport;
    otherwise a short-lived AsyncClient is opened per call.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.api_url = api_url
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._client = client
        self._log = log or LOG

    def request_payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    async def summarize(
        self,
        credential: str | None,
        pull_requests: Sequence[PullRequest],
        date_range: str,
        org_name: str,
    ) -> AiResult:
        """Summarize pull_requests; never raises.

        Credential and input are checked before any network call.
        """
        try:
            summary = await self._summarize(credential, pull_requests, date_range, org_name)
        except MyImpactError as e:
            self._log.warning("Summary failed: %s", e)
            return AiResult.fail(e)
        self._log.info("Generated summary for %d PRs (%d chars)", len(pull_requests), len(summary))
        return AiResult.ok(summary)

    async def _summarize(
        self,
        credential: str | None,
        pull_requests: Sequence[PullRequest],
        date_range: str,
        org_name: str,
    ) -> str:
        if not credential or not credential.strip():
            raise MissingCredential()
        if not pull_requests:
            raise NoInput()
        payload = self.request_payload(build_prompt(pull_requests, date_range, org_name))
        response = await self._post(credential, payload)
        if not response.is_success:
            raise ServiceError(response.status_code, response.text)
        try:
            completion = _ChatCompletion.model_validate_json(response.content)
        except ValidationError as e:
            raise ParseError(f"Failed to parse AI response: {e}") from e
        if not completion.choices:
            raise EmptyResponse()
        return completion.choices[0].message.content

    async def _post(self, credential: str, payload: dict) -> httpx.Response:
        headers = {"Authorization": f"Bearer {credential}"}
        try:
            if self._client is not None:
                return await self._client.post(self.api_url, json=payload, headers=headers)
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.post(self.api_url, json=payload, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ServiceError(None, str(e) or type(e).__name__) from e
        except UnicodeEncodeError as e:
            # Header values must be ASCII; pasted keys sometimes carry smart quotes
            raise ServiceError(None, f"API key contains a non-ASCII character at position {e.start}") from e
