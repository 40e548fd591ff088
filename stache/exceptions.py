class StacheError(Exception):
    # base exception for all application-specific errors.
    pass

class ParseError(StacheError):
    # fatal template syntax error, reported with the 1-based line where it was detected.
    def __init__(self, line: int, message: str):
        self.line = line
        self.message = message
        super().__init__(f"line {line}: {message}")

class TemplateError(StacheError):
    # errors loading template source.
    pass

class ContextError(StacheError):
    # errors reading or decoding data contexts.
    pass

class ConfigError(StacheError):
    # errors related to configuration.
    pass

class OutputError(StacheError):
    # errors during output operations.
    pass
