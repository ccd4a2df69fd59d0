"""
JoyPet Relay - A virtual pet that reacts to touch, speech and smiles.

This package provides a trigger-arbitration state machine that merges
asynchronously-arriving sensory signals into idle/joyful display transitions,
and a webserver that relays the resulting render instructions to presentation
clients over Server-Sent Events.
"""

__version__ = "0.1.0"
