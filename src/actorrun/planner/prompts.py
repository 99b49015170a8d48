"""Prompt templates for the content planner."""

from __future__ import annotations

SCRIPT_SYSTEM_PROMPT = (
    "You are an expert browser automation developer. "
    "Create precise and reliable web scraping scripts. "
    "Respond with a single JSON object and nothing else."
)

URL_SYSTEM_PROMPT = (
    "You are an expert in generating accurate URLs for web scraping. "
    "Return only the URL with no additional text."
)

SCRIPT_PROMPT_TEMPLATE = """\
You are a web scraping expert for {namespace}. A user needs to extract specific data \
based on this prompt: "{intent}"

Create an extraction script that will:
1. Run inside the target page (plain browser JavaScript, top-level await allowed)
2. Store all extracted data in the pre-declared `data` object
3. Handle common errors that might occur during scraping
4. Read any caller-supplied values from the read-only `bindings` object

Return a JSON object with the following structure:
{{
  "url": "the page URL to open for this request",
  "script": "// extraction logic only",
  "selectors": {{"key1": "selector1", "key2": "selector2"}},
  "pagination": {{
    "nextPageSelector": "selector for the next page control, if applicable",
    "maxPages": 1
  }}
}}

Additional context (JSON):
{context}
"""

URL_PROMPT_TEMPLATE = """\
Update the URL {platform_url} queries,
- the URL should be following the user prompt: {intent}.
- The URL should be a valid URL that can be used to fetch data from the platform.
- The prompt can have multiple requirements like: location, limit, offset, filters, etc.
- The URL should be in the format of {platform_url}.
- Return ONLY a URL.

Additional context (JSON):
{context}
"""
