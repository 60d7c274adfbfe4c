"""Location collaborator contract and the observer tracker."""
