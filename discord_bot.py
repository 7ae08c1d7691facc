import os

import discord
from dotenv import load_dotenv

from topic_news import SnapshotStore, load_latest

# Load environment variables from .env.
load_dotenv()

CACHE_FILE = os.getenv("TOPIC_NEWS_CACHE_FILE", "news-cache.json")
MAX_ITEMS = 3

intents = discord.Intents.default()
intents.message_content = True  # needed to read "!news"

client = discord.Client(intents=intents)


def format_news(payload, limit=MAX_ITEMS):
    """Render the newest cached articles as one Discord message (max 2000 chars)."""
    articles = payload.get("articles") or []
    if not articles:
        return "No news cached yet."

    response = f"📰 Latest {min(limit, len(articles))} items\n\n"
    for item in articles[:limit]:
        response += f"**{item.get('title') or '(untitled)'}**\n"
        published = (item.get("publishedAt") or "")[:16].replace("T", " ")
        response += f"*{item.get('source') or 'unknown'} - {published}*\n"
        if item.get("link"):
            response += f"<{item['link']}>\n"
        response += "\n"

    if len(response) > 2000:
        response = response[:1997] + "..."
    return response


@client.event
async def on_ready():
    print(f"Logged in as {client.user}")


@client.event
async def on_message(message):
    if message.author == client.user:
        return

    if message.content.startswith("!news"):
        payload = load_latest(SnapshotStore(CACHE_FILE))
        await message.channel.send(format_news(payload))


def main():
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        raise ValueError("DISCORD_BOT_TOKEN is not set. Check your .env file.")
    client.run(token)


if __name__ == "__main__":
    main()
