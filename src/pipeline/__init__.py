"""Phase orchestration: request models, errors, state machine."""
