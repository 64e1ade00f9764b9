"""quizdeck: multiple-choice quizzes from saved quiz files."""
