"""
The SOLVERS layer runs the layout simulation on the word graph.
Pure Python/NumPy, no Qt.
"""
