"""Lambda function handlers; `handlers.main.lambda_handler` is the deployed entrypoint."""
