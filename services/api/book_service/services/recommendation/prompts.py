from __future__ import annotations

from dataclasses import dataclass

from book_service.domain.types import UserProfile


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    system: str
    user_template: str
    max_tokens: int = 4000
    temperature: float = 0.7

    def render(self, **kwargs: str) -> dict[str, str]:
        return {"system": self.system, "user": self.user_template.format(**kwargs)}


RECOMMEND_BOOKS = PromptTemplate(
    name="recommend_books",
    system=(
        "You are a knowledgeable book recommendation assistant. "
        "Always provide accurate ISBN numbers for books."
    ),
    user_template=(
        "You are a book recommendation expert. Given the following user profile, "
        "recommend {count} books that match their interests.\n\n"
        "User Profile:\n"
        "- Interests: {interests}{previously_read}{disliked_authors}\n\n"
        "IMPORTANT REQUIREMENTS:\n"
        "1. Each book MUST have a valid ISBN-13 number. Do not make up ISBNs - use "
        "only real, verified ISBNs.\n"
        "2. Recommend a diverse set of books across the user's interests.\n"
        "3. Include both classics and recent publications when appropriate.\n"
        '4. Do NOT recommend any books from the "already read" list.\n'
        '5. Do NOT recommend books by authors in the "avoid" list.\n\n'
        "Return your recommendations as a JSON array with the following structure "
        "for each book:\n"
        "{{\n"
        '  "title": "exact book title",\n'
        '  "author": "author\'s full name",\n'
        '  "isbn_13": "13-digit ISBN with no hyphens",\n'
        '  "isbn_10": "10-digit ISBN if known, otherwise null",\n'
        '  "publication_year": year as integer,\n'
        '  "reasoning": "one sentence explaining why this matches the user\'s interests"\n'
        "}}\n\n"
        "Return ONLY the JSON array, no other text."
    ),
)


def render_recommendation_prompt(profile: UserProfile, count: int) -> dict[str, str]:
    interests = (
        ", ".join(profile.interests)
        if profile.interests
        else "general fiction and non-fiction"
    )
    previously_read = (
        f"\n- Books already read (by ISBN): {', '.join(profile.previously_read)}"
        if profile.previously_read
        else ""
    )
    disliked = (
        f"\n- Authors to avoid: {', '.join(profile.disliked_authors)}"
        if profile.disliked_authors
        else ""
    )
    return RECOMMEND_BOOKS.render(
        count=str(count),
        interests=interests,
        previously_read=previously_read,
        disliked_authors=disliked,
    )
