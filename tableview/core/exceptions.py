

class TableViewError(Exception):
    """Base exception for all tableview errors"""
    pass

class ConfigError(TableViewError):
    """Invalid or unreadable global.json / table definition file"""
    pass

class SchemaError(TableViewError):
    """
    A table definition entry can't become a FieldDescriptor at all:
    no key, no filter type
    """
    pass

class ExportError(TableViewError):
    """Export refused: table marked non-exportable, or nowhere to write to"""
    pass
