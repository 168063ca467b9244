"""Voice client: microphone, speech detection, and the assistant state machine."""
