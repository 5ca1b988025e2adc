"""Debug a GitHub Actions runner over SSH with upterm and tmux."""
