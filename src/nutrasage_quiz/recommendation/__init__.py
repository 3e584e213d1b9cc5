"""
Recommendation layer (quiz funnel)

Turns a quiz session's answers into a product recommendation:
  - tag extraction   (selected options -> tags)
  - rule matching    (tags -> answer_key rule: exact, subset, partial)
  - fallback policy  (rule products, else catalog, else fixed products)

Read-only: nothing here writes to the database.
"""
