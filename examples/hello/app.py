"""Hello World — the simplest perch app.

Demonstrates verb decorators, ``:name`` path parameters, JSON and text
responses, shared state, global headers, and a custom error handler.

Run:
    python app.py
"""

from perch import App, AppConfig, ErrorRecord, Response


class Services:
    """Shared services, handed to every handler as ``ctx.state``."""

    def authenticate(self) -> str:
        return "guest"

    def db(self) -> dict[str, str]:
        return {"engine": "memory"}


app = App(
    AppConfig(
        port=3222,
        global_headers={"Access-Control-Allow-Origin": "*"},
        state=Services(),
    )
)


@app.get("/hello")
def hello(ctx, res):
    return res.send(
        {
            "message": "Hello World",
            "user": ctx.state.authenticate(),
            "db": ctx.state.db()["engine"],
            "query": ctx.query,
        }
    )


@app.get("/hello/:id")
def hello_id(ctx, res):
    return res.send({"message": "Hello World with param", "params": ctx.path_params})


@app.get("/hello/:id/configure/:name")
def configure(ctx, res):
    return res.send({"message": "Hello World with param", "params": ctx.path_params})


@app.get("/text")
def text(ctx, res):
    return res.send("text content")


@app.error
def on_error(record: ErrorRecord) -> Response:
    return Response("error", status=record.status, content_type="text/plain")


if __name__ == "__main__":
    app.run()
