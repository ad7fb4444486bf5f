"""Export a standalone bot that delivers the digest on a schedule.

The bundle reproduces fetch -> format -> dispatch without this project
installed:

    daily_news_bot.py               Script with the profile baked in
    requirements.txt                Dependencies of the script
    .github/workflows/daily-news.yml  Daily cron plus manual trigger

The Gemini API key is never written out; the script reads GEMINI_API_KEY
at run time (a repository secret in the workflow). Templates use
string.Template, so a literal dollar sign is written as $$.
"""

import json
import logging
from pathlib import Path
from string import Template

from agents.curator import CURATOR_PROMPT, DIGEST_SIZE, LANGUAGE_NAMES, build_profile_message
from config import Config
from formatting import ATTRIBUTION, HIGH_RELEVANCE_ICON, NORMAL_ICON
from models.preferences import UserPreferences

logger = logging.getLogger(__name__)

WEBHOOK_PLACEHOLDER = "PASTE_YOUR_WEBHOOK_URL_HERE"
DEFAULT_CRON = "0 22 * * *"  # 07:00 JST

SCRIPT_NAME = "daily_news_bot.py"
REQUIREMENTS_NAME = "requirements.txt"
WORKFLOW_PATH = Path(".github") / "workflows" / "daily-news.yml"

SCRIPT_TEMPLATE = Template(r'''#!/usr/bin/env python3
"""Global News Curator - scheduled digest bot.

Usage:
    pip install -r requirements.txt
    export GEMINI_API_KEY="your Gemini API key"
    python daily_news_bot.py
"""

import asyncio
import json
import os
import re
import sys
from datetime import date

import aiohttp
from pydantic_ai import Agent, WebSearchTool
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider

# Settings exported from the curator
WEBHOOK_URL = ${webhook_url}
MODEL_NAME = ${model_name}
SYSTEM_PROMPT = ${system_prompt}
PROFILE_PROMPT = ${profile_prompt}

HIGH_ICON = ${high_icon}
NORMAL_ICON = ${normal_icon}
ATTRIBUTION = ${attribution}

JSON_FENCE = re.compile(r"```json\s*\n(.*?)\n\s*```", re.DOTALL | re.IGNORECASE)
ANY_FENCE = re.compile(r"```(.*?)```", re.DOTALL)


def extract_json(text):
    match = JSON_FENCE.search(text) or ANY_FENCE.search(text)
    return json.loads((match.group(1) if match else text).strip())


def build_payload(news):
    today = date.today()
    date_str = f"{today.strftime('%a')}, {today.strftime('%b')} {today.day}"
    blocks = [
        {"type": "header", "text": {"type": "plain_text", "text": f"\U0001F30D Daily Global News Digest - {date_str}", "emoji": True}},
        {"type": "divider"},
    ]
    for index, item in enumerate(news, start=1):
        try:
            score = int(item.get("relevanceScore") or 50)
        except (TypeError, ValueError):
            score = 50
        icon = HIGH_ICON if score > 80 else NORMAL_ICON
        text = (
            f"*{index}. {icon} {item.get('title') or 'No Title'}*\n"
            f"{item.get('summary') or 'No Summary'}\n"
            f"_{item.get('source') or 'Unknown'}_ | <{item.get('url') or '#'}|Read More>"
        )
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": text}})
    blocks.append({"type": "context", "elements": [{"type": "mrkdwn", "text": ATTRIBUTION}]})
    return {"text": f"Daily News Digest - {date_str}", "blocks": blocks}


async def main():
    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        print("Error: GEMINI_API_KEY environment variable is missing.", file=sys.stderr)
        return 1
    if not WEBHOOK_URL.startswith(("http://", "https://")):
        print("Error: A valid webhook URL is required.", file=sys.stderr)
        return 1

    print("Fetching curated news...")
    agent = Agent(
        GoogleModel(MODEL_NAME, provider=GoogleProvider(api_key=api_key)),
        output_type=str,
        system_prompt=SYSTEM_PROMPT,
        builtin_tools=[WebSearchTool()],
    )
    result = await agent.run(PROFILE_PROMPT)
    news = [item for item in extract_json(result.output) if isinstance(item, dict)]
    if not news:
        print("Error: no news items in the response.", file=sys.stderr)
        return 1

    print(f"Found {len(news)} articles. Sending to the webhook...")
    async with aiohttp.ClientSession() as session:
        async with session.post(WEBHOOK_URL, json=build_payload(news)) as resp:
            print(f"Done! (status {resp.status})")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
''')

WORKFLOW_TEMPLATE = Template("""name: Daily Global News

on:
  schedule:
    - cron: '${cron}'
  # Manual runs
  workflow_dispatch:

jobs:
  run-bot:
    runs-on: ubuntu-latest

    steps:
      - name: Checkout code
        uses: actions/checkout@v4

      - name: Setup Python
        uses: actions/setup-python@v5
        with:
          python-version: '3.12'

      - name: Install dependencies
        run: pip install -r requirements.txt

      - name: Run News Bot
        env:
          GEMINI_API_KEY: $${{ secrets.GEMINI_API_KEY }}
        run: python daily_news_bot.py
""")

REQUIREMENTS = """pydantic-ai-slim[google]>=1.0,<2
aiohttp>=3.9
"""


def _model_name(model: str) -> str:
    """Gemini model name for the standalone script."""
    for prefix in ("google-gla:", "google:"):
        if model.startswith(prefix):
            return model[len(prefix):]
    return "gemini-2.5-flash"


def render_script(preferences: UserPreferences, config: Config) -> str:
    """Render the bot script with the profile baked in."""
    language = LANGUAGE_NAMES.get(config.language, LANGUAGE_NAMES["en"])
    values = {
        "webhook_url": preferences.webhook_url or WEBHOOK_PLACEHOLDER,
        "model_name": _model_name(config.curator_model),
        "system_prompt": CURATOR_PROMPT.format(count=DIGEST_SIZE, language=language),
        "profile_prompt": build_profile_message(preferences),
        "high_icon": HIGH_RELEVANCE_ICON,
        "normal_icon": NORMAL_ICON,
        "attribution": ATTRIBUTION,
    }
    # JSON string literals are valid Python string literals; keep emoji unescaped
    # since JSON surrogate pairs are not
    literals = {key: json.dumps(value, ensure_ascii=False) for key, value in values.items()}
    return SCRIPT_TEMPLATE.substitute(literals)


def render_workflow(cron: str = DEFAULT_CRON) -> str:
    return WORKFLOW_TEMPLATE.substitute(cron=cron)


def write_automation_bundle(
    preferences: UserPreferences,
    output_dir: Path,
    config: Config,
    cron: str = DEFAULT_CRON,
) -> list[Path]:
    """Write the script, its requirements and the workflow.

    Args:
        preferences: Profile to bake into the script
        output_dir: Directory to write into (created if missing)
        config: Supplies the curator model and language
        cron: Schedule for the workflow (UTC)

    Returns:
        Paths of the written files
    """
    files = {
        output_dir / SCRIPT_NAME: render_script(preferences, config),
        output_dir / REQUIREMENTS_NAME: REQUIREMENTS,
        output_dir / WORKFLOW_PATH: render_workflow(cron),
    }
    for path, content in files.items():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info("Automation file written | file=%s", path)

    if not preferences.webhook_url:
        logger.warning("No webhook configured | script contains a placeholder URL")
    return list(files)
