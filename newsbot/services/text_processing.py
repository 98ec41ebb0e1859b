from datetime import datetime

CONTEXT_CONTENT_LIMIT = 1500


def clean_text(text):
    """Collapses runs of whitespace, newlines included, to single spaces."""
    return " ".join(text.split())


def truncate(text, limit):
    if len(text) <= limit:
        return text
    return text[:limit] + '...'


def _format_date(value):
    if not value:
        return 'Date not available'
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return value
    return value.strftime('%c')


def _field(article, key):
    # client supplied objects may carry anything
    value = article.get(key)
    return value if isinstance(value, str) else None


def format_news_for_context(articles):
    """
    Renders articles (dicts in the API's camelCase shape) as the context
    block handed to the assistant.
    """
    blocks = []
    for index, article in enumerate(articles, start=1):
        content = _field(article, 'content')
        lines = [
            f"**Article {index}: {_field(article, 'title') or 'Untitled'}**",
            f"Source: {_field(article, 'source') or 'Unknown'}",
            f"Category: {_field(article, 'category') or 'General'}",
            f"Published: {_format_date(_field(article, 'publishedAt'))}",
        ]
        url = _field(article, 'url')
        if url:
            lines.append(f"URL: {url}")
        lines.append("")
        lines.append(f"**Summary:** {_field(article, 'summary') or 'No summary available'}")
        lines.append("")
        lines.append("**Full Content:** "
                     + (truncate(content, CONTEXT_CONTENT_LIMIT) if content else 'Content not available'))
        lines.append("")
        lines.append("---")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def strip_search_prefix(message):
    """Drops conversational lead-ins ("please", "tell me about", ...) before a web search."""
    text = message.strip()
    lowered = text.lower()
    for prefix in ('please ', 'can you ', 'could you ', 'search ', 'find ', 'look up ',
                   'tell me about ', 'what is ', 'what are '):
        if lowered.startswith(prefix):
            return text[len(prefix):].strip()
    return text
