"""Jeux de données partagés : trois bureaux, trois listes, saisies du T1."""

import pytest

from municipales.data.schemas import CandidateList, PollingStation, ResultRow, TurnoutRow


@pytest.fixture
def stations():
    return [
        PollingStation(station_id="BV1", name="Mairie", address="Place de l'Hôtel de Ville",
                       registered=1250),
        PollingStation(station_id="BV2", name="Agiot", address="Square de l'Agiot",
                       registered=1180),
        PollingStation(station_id="BV3", name="Friches", address="Avenue du Rouergue",
                       registered=1320),
    ]


@pytest.fixture
def candidates():
    # Ordre de saisie volontairement différent de l'ordre d'affichage
    return [
        CandidateList(list_id="L2", name="Liste B", average_age=51.0, order=2, active_round2=True),
        CandidateList(list_id="L1", name="Liste A", average_age=44.0, order=1, active_round2=True),
        CandidateList(list_id="L3", name="Liste C", average_age=38.0, order=3),
    ]


@pytest.fixture
def result_rows():
    # BV3 n'a encore rien déclaré
    return [
        ResultRow(station_id="BV1", registered=1250, voters=700, blanks=12, nulls=8, expressed=680,
                  votes={"L1": 400, "L2": 200, "L3": 80}, validated_by="admin"),
        ResultRow(station_id="BV2", registered=1180, voters=650, blanks=10, nulls=5, expressed=635,
                  votes={"L1": 300, "L2": 250, "L3": 85}),
        ResultRow(station_id="BV3", registered=1320),
    ]


@pytest.fixture
def turnout_rows():
    return [
        TurnoutRow(station_id="BV1", registered=1250, hourly={"09h": 80, "10h": 150, "11h": 0}),
        TurnoutRow(station_id="BV2", registered=1180, hourly={"09h": 70, "10h": 140, "11h": 230}),
    ]
