"""
Dialogue engine: natural-language slot analyzers and the turn state machine.
"""
from tripflow.agent.state_machine import DialogueEngine, TurnResult, TurnStatus

__all__ = ["DialogueEngine", "TurnResult", "TurnStatus"]
