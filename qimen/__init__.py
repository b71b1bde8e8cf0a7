"""Eight-direction time/space compass engine."""
