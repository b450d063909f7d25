"""LLM-backed query optimisation and summarisation."""

from topicscout.llm.agents import QueryAgent, SummaryAgent, extractive_summary
from topicscout.llm.client import LLMClient

__all__ = ["LLMClient", "QueryAgent", "SummaryAgent", "extractive_summary"]
