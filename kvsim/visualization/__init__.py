"""SVG rendering of linearizability results and JSON message traces."""