"""
NutraSage quiz funnel on Supabase.

Modules:
  config / repository      : client construction and table access
  recommendation/          : answers -> tags -> answer_key rule -> products
  quiz/                    : questions, progressive save, submission, saved results
  admin/                   : tag seeding, rule authoring, report, cleanup
"""
