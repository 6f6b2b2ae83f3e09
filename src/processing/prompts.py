"""
Instruction prompts for the summarization calls made while aggregating.
"""
from typing import Iterable, Optional


JSON_ONLY = "Return ONLY valid JSON, no other text."


def real_estate_prompt(target_markets: Iterable[str], price_range: Optional[str]) -> str:
    markets = ", ".join(target_markets) or "the national market"
    bracket = price_range or "mid-to-high tier"
    return f"""Act as a real estate data analyst. Analyze the RSS feed text below and extract information strictly related to:
1. Mortgage rates: specific percentages, year-over-year changes, forecasted movements.
2. Target price bracket ({bracket}): mentions of mid-to-high tier or luxury data points.
3. Geographic specifics: explicit data for {markets}.
4. Market dynamics: inventory levels, price cuts, concessions, emerging national trends.

Only report what is explicitly stated. Skip any category with no data rather than speculating.
Write the result as a short summary suitable for a conversational podcast segment.

RSS Content:"""


def news_prompt(feed_descriptions: str) -> str:
    return f"""Act as a news analyst. Extract the 3-5 most newsworthy stories from the RSS feed text below.
Sources: {feed_descriptions}

For each story give a clear headline, the key facts (who, what, when, where, why) and why it matters.
Skip routine announcements, press releases without news value, and opinion pieces.
Write the result as a summary suitable for a conversational podcast segment. Focus on facts, not speculation.

RSS Content:"""


GAME_PROMPTS = {
    "nba": (
        "Analyze the provided NBA game JSON data to write a concise narrative of the event. "
        "Identify the winner, final score, and game flow. Highlight top performers and those who "
        "struggled (using efficiency and +/-). Describe the game's style based on shooting "
        "percentages and turnover counts for both teams. Note notable stat lines or lead swings."
    ),
    "mlb": (
        "Analyze the provided MLB game JSON data to write a concise narrative of no more than 5 "
        "sentences. Identify the winner, final score, and game flow. Highlight top performers and "
        "those who struggled (ERA, at bats). Describe the game's style."
    ),
    "nfl": (
        "Analyze the provided NFL game JSON data to write a concise narrative of the event. "
        "Identify the winner, final score, and game flow. Highlight top performers and those who "
        "struggled. Describe the game's style based on score and turnover counts. Note notable "
        "stat lines or lead swings."
    ),
}


def team_news_prompt(team_name: str) -> str:
    return f"""You are filtering {team_name} team news for a sports podcast. Review the news headlines and descriptions below.

ONLY include genuinely newsworthy items: trades, major signings or extensions, significant injuries to star players,
major statements by ownership, coaches or GMs, playoff implications, significant roster moves, team controversies.
EXCLUDE game previews, routine analysis, minor roster moves, generic features and historical pieces.

Return a JSON array: [{{"headline": "original headline", "summary": "1-2 sentences on why this is newsworthy"}}]
If NO items are newsworthy, return an empty array: []
{JSON_ONLY}

News items:"""


def fan_feed_prompt(team_name: str) -> str:
    return f"""You are analyzing fan-generated content from {team_name} fan sites. These are narrative pieces with a strong fan perspective.

For each noteworthy item identify what happened, the fan perspective and emotional tone, and any specific criticism
or praise of players, coaches or front office. Keep the authentic fan voice rather than neutralizing it.

Return a JSON array: [{{"summary": "2-3 sentence summary capturing storyline and fan sentiment"}}]
If no items are relevant, return an empty array: []
{JSON_ONLY}

RSS Articles:"""


def article_prompt(title: str, url: str) -> str:
    return f"""You are analyzing an article for in-depth discussion on a daily podcast.

Article Title: {title}
Article URL: {url}

Provide:
1. Main thesis or argument (2-3 sentences)
2. Key supporting points or evidence (3-4 bullet points)
3. Potential counterarguments or limitations
4. Why this matters (1-2 sentences)
5. Discussion angles for the hosts (2-3 questions)

Format as structured conversational text, not JSON.

Article Content:"""


TOPIC_EXTRACTION_PROMPT = f"""You are extracting the key topics, entities, and storylines from a podcast episode script.

Return ONLY a JSON array of 5 to 8 short strings. Each string is a concise label (3 to 10 words) for one distinct
topic, product announcement, company, technology concept, or ongoing storyline covered in the episode.
Prefer specific and concrete labels. Include company, product and people's names when they are the subject.
Do not include filler topics such as weather or the podcast intro.
{JSON_ONLY}

Script:"""
