"""Domain services: room orchestration core and durability.

Routes and socket handlers import from here, keeping transport concerns
separated from the game mechanics.
"""
