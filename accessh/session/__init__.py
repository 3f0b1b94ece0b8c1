"""Per-connection interactive session: state machine, rendering and hosting."""
