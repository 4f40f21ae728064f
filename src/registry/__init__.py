"""Go module proxy client and go.mod reader."""
