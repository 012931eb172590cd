# statagen/graph.py
"""
LangGraph State Machine - Batch Pipeline

This module runs the whole wizard non-interactively (or with an
optional review hook) as a LangGraph graph:

    suggester → review → coder ─┐
        ↑         │        ↑    │ next
        └─ back ──┘        └────┘
                                ↓ end
                               END

The graph drives a WizardSession; all workflow rules (stage gating,
busy flags, failure notices) are enforced there, not here.
"""

from typing import Callable, List, Literal, Optional, Tuple

from langgraph.graph import StateGraph, END

from .progress import log_event, update_display
from .session import WizardSession
from .state import PipelineState, Stage


ReviewHook = Callable[[WizardSession], None]


def create_suggester_node(session: WizardSession):
    """Factory to create the suggester node with the session bound."""
    async def node_suggester(state: PipelineState) -> PipelineState:
        rounds = state.get("suggestion_rounds", 0) + 1
        update_display("Suggester", f"Suggesting variables (round {rounds})...")

        await session.request_suggestions()

        state["suggestion_rounds"] = rounds
        state["stage"] = session.state.stage.value
        return state
    return node_suggester


def create_review_node(session: WizardSession, review_hook: Optional[ReviewHook] = None):
    """
    Factory to create the review node.

    The hook may edit the taxonomy through the session, or call
    session.return_to_topic() to ask for a new suggestion round. If the
    session is still in review afterwards, the taxonomy is confirmed.
    """
    def node_review(state: PipelineState) -> PipelineState:
        update_display("Review", "Reviewing variables...")

        if review_hook is not None:
            review_hook(session)

        if session.state.stage == Stage.VARIABLE_REVIEW:
            session.confirm()

        state["stage"] = session.state.stage.value
        return state
    return node_review


def create_coder_node(session: WizardSession):
    """Factory to create the coder node; handles one queued method per visit."""
    async def node_coder(state: PipelineState) -> PipelineState:
        queue = list(state.get("method_queue", []))
        if not queue:
            return state

        category, method_name = queue[0]
        label = f"{category}: {method_name}"
        update_display("Coder", f"{label} ({len(queue)} left)")

        session.select_category(category)
        section = await session.generate(method_name)

        if section is None:
            state["failed"] = state.get("failed", []) + [label]
        else:
            state["generated"] = state.get("generated", []) + [label]

        state["method_queue"] = queue[1:]
        return state
    return node_coder


def route_after_suggestion(state: PipelineState) -> Literal["review", "end"]:
    if state.get("stage") == Stage.VARIABLE_REVIEW.value:
        return "review"
    log_event("WARNING", "Pipeline", "No taxonomy was suggested; stopping")
    return "end"


def route_after_review(state: PipelineState) -> Literal["back", "generate", "end"]:
    if state.get("stage") == Stage.TOPIC_INTAKE.value:
        return "back"
    if state.get("method_queue"):
        return "generate"
    return "end"


def route_after_coder(state: PipelineState) -> Literal["next", "end"]:
    return "next" if state.get("method_queue") else "end"


def build_graph(session: WizardSession, review_hook: Optional[ReviewHook] = None):
    """
    Build the batch pipeline graph.

    Args:
        session: The session whose workflow the graph drives
        review_hook: Optional callable run during variable review

    Returns:
        Compiled StateGraph
    """
    graph = StateGraph(PipelineState)

    graph.add_node("suggester", create_suggester_node(session))
    graph.add_node("review", create_review_node(session, review_hook))
    graph.add_node("coder", create_coder_node(session))

    graph.set_entry_point("suggester")

    graph.add_conditional_edges(
        "suggester",
        route_after_suggestion,
        {"review": "review", "end": END}
    )
    graph.add_conditional_edges(
        "review",
        route_after_review,
        {"back": "suggester", "generate": "coder", "end": END}
    )
    graph.add_conditional_edges(
        "coder",
        route_after_coder,
        {"next": "coder", "end": END}
    )

    return graph.compile()


async def run_pipeline(
    session: WizardSession,
    method_queue: List[Tuple[str, str]],
    run_dir: str = "",
    review_hook: Optional[ReviewHook] = None,
) -> PipelineState:
    """
    Execute the wizard from topic intake to the last queued method.

    Args:
        session: Session in TopicIntake with topic and role counts set
        method_queue: (category, method name) pairs to generate, in order
        run_dir: Run output directory (recorded in the final state)
        review_hook: Optional callable run during variable review

    Returns:
        The final PipelineState
    """
    graph = build_graph(session, review_hook)

    initial_state = PipelineState(
        method_queue=list(method_queue),
        generated=[],
        failed=[],
        stage=session.state.stage.value,
        suggestion_rounds=0,
        run_dir=run_dir,
    )

    # One coder step per method plus headroom for review rounds
    recursion_limit = 2 * len(method_queue) + 50

    log_event("INFO", "Pipeline", f"Starting pipeline with {len(method_queue)} queued methods")
    final_state = await graph.ainvoke(initial_state, config={"recursion_limit": recursion_limit})
    log_event(
        "INFO", "Pipeline",
        f"Pipeline finished in stage {final_state.get('stage')}: "
        f"{len(final_state.get('generated', []))} generated, {len(final_state.get('failed', []))} failed"
    )
    return final_state
