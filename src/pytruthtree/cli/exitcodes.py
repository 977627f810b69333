"""Process exit codes for the pytruthtree CLI."""

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_INCORRECT = 2
EXIT_MALFORMED = 3
