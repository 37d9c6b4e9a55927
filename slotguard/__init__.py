"""Meeting booking service that never double-books an owner."""
