"""Discrete-event simulator with its event queue, event log, request history and seeded generator."""