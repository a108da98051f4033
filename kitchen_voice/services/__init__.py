"""
Services Package - Business Logic

The pure core (numbers, cooking_time, commands, timers, speech) has no
I/O. claude.py and audio.py talk to external services; session.py ties
them together for one person cooking one recipe.
"""
