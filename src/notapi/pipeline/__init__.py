"""
Admission/execution pipeline.

The execution queue bounds concurrent provider invocations, the
notification sink writes the operator audit trail, and the keep-alive
scheduler is suspended while notifications are in flight.
"""
