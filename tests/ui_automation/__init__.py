"""
UI Automation Tests using Playwright

End-to-end tests driving Podman Desktop and the AI Lab extension. Each
phase of every test matrix row is collected as its own test, in order,
against a single running application.
"""
