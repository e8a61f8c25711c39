"""
BDD API testing: framework, feature files, step definitions and bindings.
"""
