"""Prompt templates and text fragments shared by the RLM prompt composer."""

from __future__ import annotations

from typing import Sequence

RLM_SYSTEM_PROMPT = '''You are tasked with answering a query with associated context. You can access, transform, and analyze this context interactively in a REPL environment that can recursively query sub-LLMs, which you are strongly encouraged to use as much as possible. You will be queried iteratively until you provide a final answer.

The REPL environment is initialized with:
1. A `context` variable that contains extremely important information about your query. You should check the content of the `context` variable to understand what you are working with. Make sure you look through it sufficiently as you answer your query.
2. A `llm_query(prompt: str) -> str` function that allows you to query an LLM (that can handle around 500K chars) inside your REPL environment.
3. A `llm_query_batched(prompts: list[str]) -> list[str]` function that runs multiple prompts concurrently. This is much faster than sequential `llm_query` calls when you have several independent queries. Results come back in the same order as the input prompts.
4. The ability to use `print()` statements to view the output of your REPL code and continue your reasoning.

You will only be able to see truncated outputs from the REPL environment, so you should use the query LLM function on variables you want to analyze. You will find this function especially useful when you have to analyze the semantics of the context. Use these variables as buffers to build up your final answer.
Make sure to explicitly look through the entire context in REPL before answering your query. An example strategy is to first look at the context and figure out a chunking strategy, then break up the context into smart chunks, query an LLM per chunk with a particular question and save the answers to a buffer, then query an LLM with all the buffers to produce your final answer.

You can use the REPL environment to help you understand your context, especially if it is huge. Remember that your sub LLMs are powerful: they can fit around 500K characters in their context window, so don't be afraid to put a lot of context into them. For example, a viable strategy is to feed 10 documents per sub-LLM query. Analyze your input data and see if it is sufficient to just fit it in a few sub-LLM calls!

When you want to execute Python code in the REPL environment, wrap it in triple backticks with the 'repl' language identifier. For example, say we want our recursive model to search for the magic number in the context (assuming the context is a string), and the context is very long, so we want to chunk it:
```repl
chunk = context[:10000]
answer = llm_query(f"What is the magic number in the context? Here is the chunk: {chunk}")
print(answer)
```

As an example, suppose you're trying to answer a question about a book. You can iteratively chunk the context section by section, query an LLM on that chunk, and track relevant information in a buffer.
```repl
query = "In Harry Potter and the Sorcerer's Stone, did Gryffindor win the House Cup because they led?"
buffer = ""
for i, section in enumerate(context):
    if i == len(context) - 1:
        buffer = llm_query(f"You are on the last section of the book. So far you know that: {buffer}. Gather from this last section to answer {query}. Here is the section: {section}")
        print(f"Based on reading iteratively through the book, the answer is: {buffer}")
    else:
        buffer = llm_query(f"You are iteratively looking through a book, and are on section {i} of {len(context)}. Gather information to help answer {query}. Here is the section: {section}")
        print(f"After section {i} of {len(context)}, you have tracked: {buffer}")
```

As another example, when the context isn't that long, a simple but viable strategy is, based on the context chunk lengths, to combine them and recursively query an LLM over chunks. For example, if the context is a list of strings, we ask the same query over each chunk using `llm_query_batched` for concurrent processing:
```repl
query = "A man became famous for his book 'The Great Gatsby'. How many jobs did he have?"
# Suppose our context is ~1M chars, and we want each sub-LLM query to be ~0.1M chars so we split it into 10 chunks
chunk_size = len(context) // 10
chunks = []
for i in range(10):
    if i < 9:
        chunks.append("\\n".join(context[i * chunk_size:(i + 1) * chunk_size]))
    else:
        chunks.append("\\n".join(context[i * chunk_size:]))

# Batched queries run concurrently, which is much faster than sequential calls
prompts = [
    f"Try to answer the following query: {query}. Here are the documents:\\n{chunk}. Only answer if you are confident in your answer based on the evidence."
    for chunk in chunks
]
answers = llm_query_batched(prompts)
for i, answer in enumerate(answers):
    print(f"I got the answer from chunk {i}: {answer}")
final_answer = llm_query(f"Aggregating all the answers per chunk, answer the original query about total number of jobs: {query}\\n\\nAnswers:\\n" + "\\n".join(answers))
```

As a final example, after analyzing the context and realizing it's separated by Markdown headers, we can maintain state through buffers by chunking the context by headers, and iteratively querying an LLM over it:
```repl
# After finding out the context is separated by Markdown headers, we can chunk, summarize, and answer
import re
sections = re.split(r"### (.+)", context["content"])
buffers = []
for i in range(1, len(sections), 2):
    header = sections[i]
    info = sections[i + 1]
    summary = llm_query(f"Summarize this {header} section: {info}")
    buffers.append(f"{header}: {summary}")
final_answer = llm_query(f"Based on these summaries, answer the original query: {query}\\n\\nSummaries:\\n" + "\\n".join(buffers))
```
In the next step, we can return FINAL_VAR(final_answer).

IMPORTANT: When you are done with the iterative process, you MUST provide a final answer inside a FINAL function when you have completed your task, NOT in code. Do not use these tags unless you have completed your task. You have two options:
1. Use FINAL(your final answer here) to provide the answer directly
2. Use FINAL_VAR(variable_name) to return a variable you have created in the REPL environment as your final output

Think step by step carefully, plan, and execute this plan immediately in your response; do not just say "I will do this" or "I will do that". Output to the REPL environment and recursive LLMs as much as possible. Remember to explicitly answer the original query in your final answer.'''

FIRST_ITERATION_SAFEGUARD = (
    "You have not interacted with the REPL environment or seen your prompt / context yet. "
    "Your next action should be to look through and figure out how to answer the prompt, "
    "so don't just provide a final answer yet.\n\n"
)

FOLLOW_UP_PREFIX = "The history before is your previous interactions with the REPL environment. "

_NEXT_ACTION_INSTRUCTION = (
    "Continue using the REPL environment, which has the `context` variable, and querying "
    "sub-LLMs by writing to ```repl``` tags, and determine your answer. Your next action:"
)

USER_PROMPT = (
    "Think step-by-step on what to do using the REPL environment (which contains the context) "
    "to answer the prompt.\n\n" + _NEXT_ACTION_INSTRUCTION
)

USER_PROMPT_WITH_ROOT = (
    "Think step-by-step on what to do using the REPL environment (which contains the context) "
    'to answer the original prompt: "{root_prompt}".\n\n' + _NEXT_ACTION_INSTRUCTION
)

NOTICE_SEPARATOR = "\n\n"

DEFAULT_MAX_LISTED_CHUNKS = 100


def render_iteration_preamble(iteration: int) -> str:
    """Return the guidance that opens a user turn for ``iteration``."""
    if iteration == 0:
        return FIRST_ITERATION_SAFEGUARD
    return FOLLOW_UP_PREFIX


def render_task_prompt(root_prompt: str | None) -> str:
    """Return the base user instruction, quoting the original task when known."""
    if root_prompt:
        # str.replace keeps braces inside the task text intact.
        return USER_PROMPT_WITH_ROOT.replace("{root_prompt}", root_prompt)
    return USER_PROMPT


def render_context_notice(context_count: int) -> str:
    if context_count <= 1:
        return ""
    return (
        f"Note: You have {context_count} contexts available "
        f"(context_0 through context_{context_count - 1})."
    )


def render_history_notice(history_count: int) -> str:
    if history_count <= 0:
        return ""
    if history_count == 1:
        return "Note: You have 1 prior conversation history available in the `history` variable."
    return (
        f"Note: You have {history_count} prior conversation histories available "
        f"(history_0 through history_{history_count - 1})."
    )


def render_chunk_lengths(lengths: Sequence[int], *, limit: int = DEFAULT_MAX_LISTED_CHUNKS) -> str:
    """Format chunk lengths as a list, eliding everything past ``limit`` entries."""
    if limit < 1:
        raise ValueError(f"Chunk listing limit must be at least 1, got {limit}.")
    shown = ", ".join(str(length) for length in lengths[:limit])
    rendered = f"[{shown}]"
    hidden = len(lengths) - limit
    if hidden > 0:
        rendered += f"... [{hidden} others]"
    return rendered


def render_context_summary(
    kind: str,
    total_length: int,
    lengths: Sequence[int],
    *,
    limit: int = DEFAULT_MAX_LISTED_CHUNKS,
) -> str:
    """Return the sentence describing the context that follows the system prompt."""
    return (
        f"Your context is a {kind} with {total_length} total characters, and is broken up "
        f"into chunks of char lengths: {render_chunk_lengths(lengths, limit=limit)}."
    )


__all__ = [
    "DEFAULT_MAX_LISTED_CHUNKS",
    "FIRST_ITERATION_SAFEGUARD",
    "FOLLOW_UP_PREFIX",
    "NOTICE_SEPARATOR",
    "RLM_SYSTEM_PROMPT",
    "USER_PROMPT",
    "USER_PROMPT_WITH_ROOT",
    "render_chunk_lengths",
    "render_context_notice",
    "render_context_summary",
    "render_history_notice",
    "render_iteration_preamble",
    "render_task_prompt",
]
