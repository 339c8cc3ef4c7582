"""Tests for agent, completion and synthesis prompts."""

from langchain_core.messages import AIMessage, ToolMessage

from swarmAgent.graph.prompts import (
    DEFAULT_COORDINATOR_PROMPT,
    build_agent_messages,
    build_completion_messages,
    build_synthesis_messages,
)
from swarmAgent.graph.state import (
    AgentInstance,
    AgentStatus,
    ApprovalStatus,
    KnowledgeChunk,
    SubTask,
    ToolApprovalRequest,
)

from helpers import FETCH_URL


def research_agent(**changes):
    return AgentInstance(role="research", name="Research Agent", system_prompt="Find facts.", **changes)


class TestPrompts:
    def test_agent_prompt(self):
        messages = build_agent_messages(research_agent(), "Summarize today's news", [], [FETCH_URL])
        assert messages[0].content.startswith("Find facts.")
        assert "reviewed by a human" in messages[0].content
        assert messages[1].content == "As a research agent, help with this task: Summarize today's news"

    def test_agent_prompt_names_subtask_and_knowledge(self):
        subtask = SubTask(description="Collect market headlines", priority=2, assigned_role="rag")
        agent = AgentInstance(role="rag", name="Rag Agent", subtask_id=subtask.id)
        chunks = [KnowledgeChunk(content="Markets rallied", source="wire")]

        messages = build_agent_messages(agent, "Summarize today's news", chunks, [], subtask=subtask)

        assert messages[0].content == "You are a rag agent."
        assert messages[1].content == (
            "As a rag agent, help with this task: Summarize today's news\n\n"
            "Assigned sub-task (priority 2): Collect market headlines\n\n"
            "# Knowledge Context\n"
            "[1] (source: wire) Markets rallied"
        )

    def test_completion_replays_tool_outcomes(self):
        agent = research_agent(status=AgentStatus.BUSY, draft="Looking it up")
        request = ToolApprovalRequest(
            execution_id="exec-1",
            agent_id=agent.id,
            agent_role="research",
            tool_call_id="call_1",
            tool_name="fetch_url",
            arguments={"url": "https://example.com"},
            status=ApprovalStatus.EXECUTED,
            result={"title": "News"},
        )

        messages = build_completion_messages(agent, "Summarize today's news", [], [request])

        ai_message, tool_message = messages[-2:]
        assert isinstance(ai_message, AIMessage)
        assert ai_message.content == "Looking it up"
        assert ai_message.tool_calls[0]["id"] == "call_1"
        assert isinstance(tool_message, ToolMessage)
        assert tool_message.tool_call_id == "call_1"
        assert tool_message.content == '{"title": "News"}'

    def test_synthesis_prompt(self):
        agents = [
            research_agent(result="Markets rallied."),
            AgentInstance(role="analysis", name="Analysis Agent", result="Tech led gains."),
        ]
        system, human = build_synthesis_messages("", "Summarize today's news", agents)

        assert system.content == DEFAULT_COORDINATOR_PROMPT
        assert human.content == (
            "Synthesize these agent results into a comprehensive final response for: Summarize today's news\n\n"
            "Agent Results:\n"
            "Research Agent (research): Markets rallied.\n\n"
            "Analysis Agent (analysis): Tech led gains."
        )
