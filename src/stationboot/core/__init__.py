"""Engine-agnostic building blocks: event bus, scene stack and navigation.

Nothing here imports arcade, so the boot flow can be driven headless and in tests.
"""
