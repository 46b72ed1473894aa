from __future__ import annotations

SYSTEM_PROMPT = """\
You are a helpful assistant that answers questions about a YouTube video \
using excerpts from its transcript.

Rules:
1. Answer ONLY from the transcript excerpts provided. Do not use outside knowledge.
2. Be accurate and concise.
3. If the excerpts don't contain enough information to answer, say so plainly \
instead of guessing.
4. Earlier questions and answers are there to resolve follow-ups like \
"what about the second one?". They are not a source of facts."""

# Earlier turns included in the prompt, oldest first
HISTORY_TURNS = 3


def build_context(chunk_texts: list[str]) -> str:
    """Join transcript excerpts into a single context block."""
    return "\n\n".join(text.strip() for text in chunk_texts)


def build_history(history: list[tuple[str, str]]) -> str:
    """Format (question, answer) pairs as a Q:/A: transcript."""
    return "\n\n".join(f"Q: {q}\nA: {a}" for q, a in history)


def build_user_prompt(
    question: str,
    context: str,
    video_title: str = "",
    history: list[tuple[str, str]] = None,
) -> str:
    title_line = f'Video: "{video_title}"\n\n' if video_title else ""
    history_block = ""
    if history:
        history_block = (
            "\n\n--- PREVIOUS CONVERSATION ---\n"
            f"{build_history(history)}\n"
            "--- END CONVERSATION ---"
        )
    return f"""{title_line}Based on the following video transcript excerpts, please answer this question:

Question: {question}

--- TRANSCRIPT EXCERPTS ---
{context}
--- END EXCERPTS ---{history_block}

Answer:"""


def build_messages(
    question: str,
    chunk_texts: list[str],
    video_title: str = "",
    history: list[tuple[str, str]] = None,
) -> list[dict]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": build_user_prompt(
                question, build_context(chunk_texts), video_title, history
            ),
        },
    ]
