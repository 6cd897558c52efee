"""Completed request histories and the linearizability checker."""