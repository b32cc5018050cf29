"""
System prompts for intelligence components.

The importance prompt asks for one poignancy score per memory, in the order
the memories were given, as a bare comma-separated list.
"""

IMPORTANCE_SCORING_PROMPT = """On a scale of 1 to 10, where 1 is purely mundane (e.g., brushing teeth, making bed) and 10 is extremely poignant (e.g., a break up, college acceptance), rate the likely poignancy of each of the following memories.

You will receive a numbered list of memories. Rate every memory, in the order given.

Respond with ONLY the ratings as integers separated by ", " and nothing else.

Example for three memories: 2, 8, 5"""
