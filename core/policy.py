"""Default policy tables: block lists, rewrites, provider priority, entity profiles."""

from __future__ import annotations

from typing import Dict, List


# Social platforms, stock-photo sites, aggregators and commerce/retail domains.
DEFAULT_BLOCKED_DOMAINS: List[str] = [
    "facebook.com",
    "pinterest.com",
    "tiktok.com",
    "twitter.com",
    "x.com",
    "snapchat.com",
    "linkedin.com",
    "tumblr.com",
    "reddit.com",
    "redd.it",
    "flickr.com",
    "deviantart.com",
    "behance.net",
    "500px.com",
    "youtube.com",
    "youtu.be",
    "ytimg.com",
    "fbcdn.net",
    "fbsbx.com",
    "threads.net",
    "tiktokcdn.com",
    "twimg.com",
    "t.co",
    "imgur.com",
    "giphy.com",
    "vk.com",
    "weibo.com",
    "bilibili.com",
    "unsplash.com",
    "pexels.com",
    "pixabay.com",
    "shutterstock.com",
    "gettyimages.com",
    "istockphoto.com",
    "alamy.com",
    "depositphotos.com",
    "dreamstime.com",
    "123rf.com",
    "adobe.com",
    "canva.com",
    "medium.com",
    "substack.com",
    "quora.com",
    "buzzfeed.com",
    "boredpanda.com",
    "wikimedia.org",
    "lazada.com",
    "shopee",
    "mercari",
    "poshmark.com",
    "ebay.com",
    "amazon.com",
    "shopify.com",
    "merchbar.com",
    "walmart.com",
    "target.com",
    "bestbuy.com",
    "aliexpress.com",
    "alibaba.com",
    "etsy.com",
    "redbubble.com",
    "teepublic.com",
    "zazzle.com",
    "stockx.com",
    "goat.com",
    "footlocker.com",
    "nike.com",
    "adidas.com",
]

DEFAULT_BLOCKED_SUBDOMAIN_PREFIXES: List[str] = ["store.", "shop.", "merch."]

# Lower-cased query -> provider query. Used for known two-subject collisions.
DEFAULT_QUERY_REWRITES: Dict[str, str] = {
    "taylor and travis": "\"taylor swift\" \"travis kelce\"",
    "olivia and olivia": "\"olivia rodrigo\" \"olivia wilde\"",
}

# Lower rank wins ties between otherwise identical duplicates.
DEFAULT_PROVIDER_PRIORITY: Dict[str, int] = {
    "google_cse": 1,
    "serpapi": 2,
    "brave": 3,
    "bing": 4,
}

PROFESSION_KEYWORDS: Dict[str, List[str]] = {
    "music": [
        "singer", "musician", "rapper", "songwriter", "producer", "band", "album",
        "song", "tour", "concert", "music", "grammy", "billboard",
    ],
    "film": [
        "actor", "actress", "movie", "film", "cinema", "hollywood", "oscar", "emmy",
        "series", "drama", "comedy", "theatre", "theater", "premiere", "director",
    ],
    "sports": [
        "athlete", "player", "sport", "team", "championship", "olympic", "football",
        "basketball", "baseball", "soccer", "tennis", "golf", "nfl", "nba",
    ],
    "fashion": [
        "model", "fashion", "runway", "magazine", "photoshoot", "campaign", "vogue",
        "couture", "met gala",
    ],
    "social": [
        "influencer", "youtuber", "tiktoker", "creator", "podcast", "streamer",
    ],
}

DEFAULT_ENTITY_PROFILES: Dict[str, dict] = {
    "olivia rodrigo": {
        "aliases": ["olivia rodrigo", "olivia isabel rodrigo"],
        "context_keywords": [
            "singer", "songwriter", "pop star", "disney", "drivers license", "good 4 u",
            "vampire", "sour", "guts", "grammy", "billboard",
        ],
        "exclusion_terms": ["wilde", "house md", "tron", "booksmart", "don't worry darling"],
        "profession": "music",
    },
    "olivia wilde": {
        "aliases": ["olivia wilde", "olivia jane cockburn"],
        "context_keywords": [
            "actress", "director", "hollywood", "house md", "tron", "booksmart",
            "don't worry darling", "richard jewell", "film", "movie",
        ],
        "exclusion_terms": ["rodrigo", "drivers license", "good 4 u", "sour", "guts"],
        "profession": "film",
    },
    "taylor swift": {
        "aliases": ["taylor swift", "taylor alison swift"],
        "context_keywords": [
            "singer", "songwriter", "pop star", "eras tour", "folklore", "midnights",
            "reputation", "grammy", "swiftie",
        ],
        "exclusion_terms": ["lautner", "twilight", "sharkboy"],
        "profession": "music",
    },
    "taylor lautner": {
        "aliases": ["taylor lautner", "taylor daniel lautner"],
        "context_keywords": ["actor", "twilight", "jacob black", "sharkboy", "abduction"],
        "exclusion_terms": ["swift", "eras tour", "swiftie", "grammy"],
        "profession": "film",
    },
    "travis kelce": {
        "aliases": ["travis kelce"],
        "context_keywords": ["chiefs", "nfl", "tight end", "super bowl", "football"],
        "exclusion_terms": [],
        "profession": "sports",
    },
}
