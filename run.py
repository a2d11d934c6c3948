from fantasy import create_app, db
from fantasy.models import Group, Match, Prediction, Team, Tournament, User

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "User": User,
        "Group": Group,
        "Match": Match,
        "Prediction": Prediction,
        "Tournament": Tournament,
        "Team": Team,
    }


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
