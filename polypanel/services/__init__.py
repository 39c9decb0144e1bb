# Service layer for the PolyTrack server panel
# - game_client:  aiohttp client for the launcher JSON API
# - pollers:      fixed-interval, sequence-numbered resource polling
# - panel_sync:   status / roster / session synchronization and commands
