"""CI tooling: the Xcode build/test driver."""
