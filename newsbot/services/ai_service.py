import requests
from flask import current_app
from google import genai
from google.genai import types

DEFAULT_MODEL = 'gemini-2.0-flash'
FALLBACK_REPLY = ("I'm sorry, I couldn't reach the AI service right now. "
                  "Please try again in a moment, or open the original articles for the full story.")
NOT_CONFIGURED_REPLY = ("I'm sorry, but the AI service is not configured. "
                        "Set GEMINI_API_KEY to use the chat assistant.")

_clients = {}


def get_client():
    """Returns a Gemini client for the configured key, or None when no key is set."""
    api_key = current_app.config.get('GEMINI_API_KEY')
    if not api_key:
        return None
    if api_key not in _clients:
        _clients[api_key] = genai.Client(api_key=api_key)
    return _clients[api_key]


def web_search(query, limit=5):
    """Queries the configured SearXNG instance. Failures yield no results."""
    base_url = current_app.config.get('SEARXNG_URL')
    if not base_url or not query:
        return []
    try:
        response = requests.get(
            f"{base_url.rstrip('/')}/search",
            params={'q': query, 'category': 'general', 'format': 'json', 'pageno': 1},
            headers={'Accept': 'application/json', 'User-Agent': 'NewsBot-Chatbot/1.0'},
            timeout=10,
        )
        response.raise_for_status()
        results = response.json().get('results') or []
    except (requests.RequestException, ValueError) as e:
        current_app.logger.warning("Web search failed: %s", e)
        return []
    return results[:limit]


def format_search_results(query, results):
    if not results:
        return ""
    parts = [f'## Internet Search Results for: "{query}"', ""]
    for index, result in enumerate(results, start=1):
        parts.append(f"**Search Result {index}:**")
        parts.append(f"Title: {result.get('title') or 'No title'}")
        parts.append(f"URL: {result.get('url') or 'No URL'}")
        parts.append(f"Content: {result.get('content') or result.get('snippet') or 'No content available'}")
        parts.append("---")
    return "\n".join(parts)


def build_system_prompt(news_context, search_context="", is_web_search=False):
    prompt = f"""
    You are a news analysis assistant with expertise in journalism, current events and critical analysis.
    Answer questions about the news articles below.

    Available News Articles:
    {news_context or 'No articles available.'}
    """
    if search_context:
        prompt += f"\n    Internet Search Results:\n    {search_context}\n"

    prompt += """
    Response guidelines:
    - For one-liners ("in one line", "TL;DR", "quickly"): 1-2 sentences.
    - For fact-checks ("is this true?", "verify"): start with TRUE, FALSE or PARTIALLY TRUE and cite the articles.
    - For analysis ("explain", "analyze", "discuss"): 300-600 words with markdown sections.
    - For summaries: 3-5 sentences per article.
    - Otherwise answer the exact question, matching length to its complexity.
    """
    if is_web_search:
        prompt += "\n    The user asked for a web search: prioritize the search results and cite their URLs.\n"
    else:
        prompt += "\n    Focus on the available news articles.\n"
    return prompt


def generate_reply(message, news_context, search_context="", is_web_search=False):
    """Asks Gemini about the articles. Falls back to a canned reply on failure."""
    client = get_client()
    if client is None:
        return NOT_CONFIGURED_REPLY

    try:
        response = client.models.generate_content(
            model=current_app.config.get('GEMINI_MODEL') or DEFAULT_MODEL,
            contents=message,
            config=types.GenerateContentConfig(
                system_instruction=build_system_prompt(news_context, search_context, is_web_search),
                max_output_tokens=1500,
                temperature=0.7,
            ),
        )
        return response.text or FALLBACK_REPLY
    except Exception as e:
        current_app.logger.warning("AI Error: %s", e)
        return FALLBACK_REPLY
