"""VibeTune conversational pronunciation practice backend."""
