"""HTTP backend for the rehab pose coach: live sessions and end-of-session coaching."""
