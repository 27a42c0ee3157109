"""Music catalog backend: musicians, instruments, songs, albums and genres."""
