"""Core capture-loop modules.

WHY: The core package holds everything that decides what happens in a
cycle: the word list, frame normalization, token filtering, the
overlay model and the controller state machine. None of it talks to
hardware directly.

HOW: models.py defines the shared dataclasses, words.py the WordSet,
preprocess.py the frame normalization, filtering.py the spoken/silent
split, overlay.py the displayed boxes, controller.py the state machine
and timer.py the periodic auto-capture tick.

RULES:
- Collaborators are reached only through read_aloud.adapters.base ABCs
- The controller is the only writer of CycleState, OverlayState and speech
"""
