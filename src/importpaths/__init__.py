"""Import path rewriting for Go source trees."""
