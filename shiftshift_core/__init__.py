"""
Shift/Shift core Python package.

Pure game logic for the memory puzzle, kept free of any UI so the Flask app,
the terminal driver and the tests can all drive the same session.
Modules:
- grid.py: Grid, Shift, Axis
- levels.py: LevelConfig and the difficulty curve
- deal.py: target generation and scrambling
- drag.py: DragAxisController
- timers.py: Scheduler, ManualClock
- scoring.py: ScoreCalculator
- phases.py: GamePhaseMachine
- tutorial.py: TutorialChoreographer
- session.py: GameSession
- db.py: high scores and player flags (SQLite)
- cli.py: terminal play
"""
